"""Bookings domain - Slot availability, booking CRUD and status history"""
