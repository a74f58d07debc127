"""Users Domain - login/registration, sessions and subscription status"""
