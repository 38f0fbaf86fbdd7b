"""Display references derived from sequence numbers."""


def _pad(value: int, size: int = 4) -> str:
    return str(value).zfill(size)


def build_escrow_reference(sequence: int) -> str:
    """``651`` -> ``PO-0651``. Values past four digits widen."""
    return f"PO-{_pad(sequence)}"


def build_dispute_reference(sequence: int) -> str:
    return f"DSP-{_pad(sequence)}"


def build_timeline_id(sequence: int) -> str:
    return f"tl-{sequence}"


def build_user_id(sequence: int) -> str:
    return f"usr_{sequence}"


def build_notification_id(sequence: int) -> str:
    return f"notif-{_pad(sequence, 2)}"
