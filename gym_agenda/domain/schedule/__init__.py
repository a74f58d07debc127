"""
Schedule Domain

The week is stored as seven day documents (Lunedì..Domenica), each holding a
morning and an afternoon list of slots. Slots are booked by name and the whole
week is cleared once per ISO week.

Structure:
- slots.py       # Slot construction, ordering and in-document edits
- repository.py  # Day document and reset-state queries
- service.py     # Transactions: add, toggle, batch delete, weekly reset
- schemas.py     # Request/response models
- router.py      # /schedule endpoints
"""
