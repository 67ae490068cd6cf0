"""PDU processor: decodes, enriches, and relays incoming datagrams.

This is the core business logic. The decoders it calls are pure; all the
logging and stats bookkeeping for a datagram happens here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from disrelay.core.appearance import Domain, decode_appearance
from disrelay.core.articulation import decode_articulation_parameters
from disrelay.core.codec import MARKING_ASCII, decode_entity_state
from disrelay.core.errors import DecodeError, NotEntityState
from disrelay.core.geodetic import ecef_to_geodetic
from disrelay.core.models import DecodedEntityState, RelayEvent
from disrelay.core.orientation import body_to_local

if TYPE_CHECKING:
    from disrelay.core.models import EntityStatePdu, RawDatagram
    from disrelay.core.stats import ServerStats
    from disrelay.relay.hub import RelayHub

log = structlog.get_logger()

RELAY_MODES = ("raw", "decoded", "both")


def enrich(pdu: EntityStatePdu, source: RawDatagram | None = None) -> DecodedEntityState:
    """Run every conversion stage over a decoded PDU."""
    loc = pdu.location
    position = ecef_to_geodetic(loc.x, loc.y, loc.z)
    ori = pdu.orientation
    orientation = body_to_local(ori.psi, ori.theta, ori.phi,
                                position.latitude, position.longitude)
    appearance = decode_appearance(pdu.entity_type.domain, pdu.appearance,
                                   kind=pdu.entity_type.kind)
    parameters, errors = decode_articulation_parameters(pdu.articulation_records)
    return DecodedEntityState(
        pdu=pdu,
        position=position,
        orientation=orientation,
        appearance=appearance,
        articulation=tuple(parameters),
        articulation_errors=tuple(errors),
        source=source,
    )


def _domain_name(domain: int) -> str:
    try:
        return Domain(domain).name.lower()
    except ValueError:
        return str(domain)


class PduProcessor:
    """Turns raw datagrams into relayed Entity State events."""

    def __init__(self, hub: RelayHub, stats: ServerStats, relay_mode: str = "raw") -> None:
        if relay_mode not in RELAY_MODES:
            raise ValueError(f"relay_mode must be one of {RELAY_MODES}, got {relay_mode!r}")
        self._hub = hub
        self._stats = stats
        self._relay_mode = relay_mode

    @property
    def relay_mode(self) -> str:
        return self._relay_mode

    def process_datagram(
        self, datagram: RawDatagram,
    ) -> tuple[DecodedEntityState | None, DecodeError | None]:
        """Process one datagram. Returns (decoded, error); exactly one is set
        unless an unexpected failure occurred, in which case both are None.

        Never raises: bad input is per-datagram and must not stop the listener.
        """
        self._stats.record_datagram(datagram.size)
        log.debug("datagram_received", address=datagram.address,
                  port=datagram.port, size=datagram.size)

        try:
            pdu = decode_entity_state(datagram.data)
        except NotEntityState as e:
            self._stats.record_filtered()
            log.debug("pdu_ignored", address=datagram.address, pdu_type=e.pdu_type)
            return None, e
        except DecodeError as e:
            self._stats.record_rejected(e.reason)
            log.debug("pdu_rejected", address=datagram.address,
                      reason=e.reason, error=str(e))
            return None, e

        try:
            decoded = enrich(pdu, source=datagram)
            self._log_decoded(decoded)
            self._stats.record_decoded(str(pdu.entity_id),
                                       _domain_name(pdu.entity_type.domain),
                                       pdu.marking.text)
            self._hub.publish(self._make_event(datagram, decoded))
        except Exception:
            log.error("pdu_processing_failed", address=datagram.address,
                      entity_id=str(pdu.entity_id), exc_info=True)
            self._stats.record_processing_error()
            return None, None

        return decoded, None

    def _make_event(self, datagram: RawDatagram, decoded: DecodedEntityState) -> RelayEvent:
        raw = datagram.data if self._relay_mode in ("raw", "both") else None
        summary = decoded.to_summary() if self._relay_mode in ("decoded", "both") else None
        return RelayEvent(raw=raw, summary=summary)

    def _log_decoded(self, decoded: DecodedEntityState) -> None:
        pdu = decoded.pdu
        pos = decoded.position
        ori = decoded.orientation

        if pdu.marking.character_set != MARKING_ASCII:
            log.warning("marking_not_ascii", entity_id=str(pdu.entity_id),
                        character_set=pdu.marking.character_set,
                        characters=pdu.marking.characters.hex())

        log.debug("espdu_decoded",
                  entity_id=str(pdu.entity_id),
                  entity_type=str(pdu.entity_type),
                  marking=pdu.marking.text,
                  lat=pos.latitude, lon=pos.longitude, alt=pos.altitude,
                  heading=ori.heading, pitch=ori.pitch, roll=ori.roll,
                  damage=_damage_name(decoded),
                  articulation_count=len(pdu.articulation_records))

        for index, ap in enumerate(decoded.articulation):
            log.debug("articulation_parameter",
                      entity_id=str(pdu.entity_id), index=index,
                      designator=ap.designator, parameter_type=ap.parameter_type,
                      value=f"0x{ap.value_hex}",
                      attached_entity_id=str(ap.entity_id) if ap.entity_id else None)

        if decoded.articulation_errors:
            self._stats.record_articulation_errors(len(decoded.articulation_errors))
            for err in decoded.articulation_errors:
                log.warning("articulation_parameter_malformed",
                            entity_id=str(pdu.entity_id), index=err.index,
                            error=err.detail)


def _damage_name(decoded: DecodedEntityState) -> str | None:
    damage = decoded.appearance.damage
    return damage.name if damage is not None else None
