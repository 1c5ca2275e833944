"""Vouchers domain - Discount code validation and redemption"""
