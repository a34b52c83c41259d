"""In-process storage for widgets, promo codes, contacts and bookings.

The service only talks to storage through these coroutines, so a database
backed implementation can replace ``store`` without touching callers.
Records are returned as copies; callers never mutate stored state.
"""
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from movequote.core.logger import get_logger
from movequote.models.booking import BookingCreate, BookingRecord, ContactRecord
from movequote.models.promo import PromoCode, PromoInput
from movequote.models.widget import WidgetConfig, WidgetSaveRequest

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    def __init__(self):
        self.clear()

    def clear(self):
        self._widgets: Dict[str, WidgetConfig] = {}
        self._promos: Dict[str, PromoCode] = {}
        self._contacts: Dict[str, ContactRecord] = {}
        self._bookings: Dict[str, BookingRecord] = {}

    # ------------------------------------------------------------------
    # Widgets
    # ------------------------------------------------------------------
    async def get_widget(self, widget_id: str) -> Optional[WidgetConfig]:
        widget = self._widgets.get(widget_id)
        return widget.model_copy(deep=True) if widget else None

    async def list_widgets(self) -> List[WidgetConfig]:
        return sorted(
            (w.model_copy(deep=True) for w in self._widgets.values()),
            key=lambda w: w.created_at,
            reverse=True,
        )

    async def save_widget(self, payload: WidgetSaveRequest, widget_id: Optional[str] = None,
                          user_id: str = "") -> WidgetConfig:
        existing = self._widgets.get(widget_id) if widget_id else None
        data = payload.model_dump(by_alias=True, exclude={"pricing"})
        if existing is not None:
            pricing = payload.pricing if payload.pricing is not None else existing.pricing
            created_at = existing.created_at
            user_id = existing.user_id
        else:
            pricing = payload.pricing
            created_at = _now()

        widget = WidgetConfig.model_validate({
            **data,
            "id": widget_id or str(uuid.uuid4()),
            "userId": user_id,
            "pricing": pricing,
            "createdAt": created_at,
            "updatedAt": _now(),
        })
        self._widgets[widget.id] = widget
        logger.info(f"Saved widget {widget.id} ({widget.name})")
        return widget.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Promo codes
    # ------------------------------------------------------------------
    async def get_promo(self, code: str) -> Optional[PromoCode]:
        promo = self._promos.get((code or "").strip().upper())
        return promo.model_copy() if promo else None

    async def put_promo(self, promo: PromoCode) -> PromoCode:
        record = promo.model_copy(update={
            "code": promo.code.strip().upper(),
            "id": promo.id or str(uuid.uuid4()),
            "created_at": promo.created_at or _now(),
        })
        self._promos[record.code] = record
        return record.model_copy()

    async def upsert_promos(self, promos: List[PromoInput]) -> int:
        for p in promos:
            existing = self._promos.get(p.code)
            if existing:
                record = existing.model_copy(update={
                    "discount_type": p.discount_type,
                    "discount_value": p.discount_value,
                    "is_active": True,
                })
                self._promos[p.code] = record
            else:
                await self.put_promo(PromoCode(
                    code=p.code,
                    discount_type=p.discount_type,
                    discount_value=p.discount_value,
                    is_active=True,
                ))
        return len(promos)

    async def list_promos(self, q: str = "", limit: int = 50, offset: int = 0) -> Tuple[List[PromoCode], int]:
        needle = (q or "").strip().upper()
        matches = [p for p in self._promos.values() if needle in p.code]
        matches.sort(key=lambda p: p.created_at, reverse=True)
        return [p.model_copy() for p in matches[offset:offset + limit]], len(matches)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------
    async def upsert_contact(self, widget_id: str, first_name: str, last_name: str,
                             email: str, phone: str) -> Tuple[str, bool]:
        """Insert or update by (widget, email). Returns ``(id, created)``."""
        for contact in self._contacts.values():
            if contact.widget_id == widget_id and contact.email.lower() == email.lower():
                updated = contact.model_copy(update={
                    "first_name": first_name,
                    "last_name": last_name,
                    "phone": phone,
                })
                self._contacts[contact.id] = updated
                return contact.id, False

        record = ContactRecord(
            id=str(uuid.uuid4()),
            widget_id=widget_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            created_at=_now(),
        )
        self._contacts[record.id] = record
        return record.id, True

    async def list_contacts(self, widget_id: Optional[str] = None) -> List[ContactRecord]:
        contacts = [c for c in self._contacts.values() if not widget_id or c.widget_id == widget_id]
        contacts.sort(key=lambda c: c.created_at, reverse=True)
        return [c.model_copy() for c in contacts]

    async def delete_contact(self, contact_id: str) -> bool:
        return self._contacts.pop(contact_id, None) is not None

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------
    async def create_booking(self, booking: BookingCreate) -> BookingRecord:
        contact_id, _ = await self.upsert_contact(
            booking.widget_id, booking.first_name, booking.last_name, booking.email, booking.phone
        )
        record = BookingRecord.model_validate({
            **booking.model_dump(by_alias=True),
            "id": str(uuid.uuid4()),
            "contactId": contact_id,
            "createdAt": _now(),
        })
        self._bookings[record.id] = record
        logger.info(f"Created booking {record.id} for widget {record.widget_id}")
        return record.model_copy(deep=True)

    async def list_bookings(self, widget_id: Optional[str] = None) -> List[BookingRecord]:
        bookings = [b for b in self._bookings.values() if not widget_id or b.widget_id == widget_id]
        bookings.sort(key=lambda b: b.created_at, reverse=True)
        return [b.model_copy(deep=True) for b in bookings]


store = InMemoryStore()
