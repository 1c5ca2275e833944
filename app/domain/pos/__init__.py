"""POS domain - Cashier sessions, transactions, expenses and reconciliation"""
