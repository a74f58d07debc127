"""Notifications Domain - FCM push registrations and broadcasts"""
