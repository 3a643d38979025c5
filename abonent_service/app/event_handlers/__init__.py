"""이벤트 핸들러 패키지."""

from .abonent_events_forwarder import AbonentEventsForwarder

__all__ = ["AbonentEventsForwarder"]
