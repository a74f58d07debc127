"""Domain packages: schedule, users, ledger, notifications"""
