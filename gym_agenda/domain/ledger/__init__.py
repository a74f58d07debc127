"""Ledger Domain - bank, audit entries, subscriptions, expenses, goals and membership admin"""
