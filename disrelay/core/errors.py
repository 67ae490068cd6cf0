"""Decode error taxonomy.

Every error here is scoped to a single datagram. The processor catches them,
logs, and keeps listening; none of them ever stops the receive loop.
"""

from __future__ import annotations


class TruncatedBuffer(Exception):
    """A PduReader read ran past the end of its buffer."""

    def __init__(self, needed: int, remaining: int, offset: int) -> None:
        super().__init__(
            f"need {needed} bytes at offset {offset}, only {remaining} remaining"
        )
        self.needed = needed
        self.remaining = remaining
        self.offset = offset


class DecodeError(Exception):
    """Base class for per-datagram decode failures."""

    reason = "decode_error"


class TooShort(DecodeError):
    reason = "too_short"

    def __init__(self, length: int, minimum: int) -> None:
        super().__init__(f"datagram is {length} bytes, minimum is {minimum}")
        self.length = length
        self.minimum = minimum


class UnsupportedVersion(DecodeError):
    reason = "unsupported_version"

    def __init__(self, version: int) -> None:
        super().__init__(f"unsupported DIS protocol version: {version}")
        self.version = version


class NotEntityState(DecodeError):
    """Not an error so much as a filter outcome: the PDU is some other type."""

    reason = "not_entity_state"

    def __init__(self, pdu_type: int) -> None:
        super().__init__(f"PDU type {pdu_type} is not Entity State")
        self.pdu_type = pdu_type


class TruncatedPdu(DecodeError):
    reason = "truncated_pdu"

    def __init__(self, length: int, detail: str = "") -> None:
        msg = f"PDU truncated at {length} bytes"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.length = length


class MalformedArticulationParameter(DecodeError):
    """One articulation record could not be decoded. The rest still are."""

    reason = "malformed_articulation_parameter"

    def __init__(self, index: int, detail: str) -> None:
        super().__init__(f"articulation parameter #{index}: {detail}")
        self.index = index
        self.detail = detail
