"""GymAgenda backend - weekly schedule, bookings, shared ledger and push notifications"""
