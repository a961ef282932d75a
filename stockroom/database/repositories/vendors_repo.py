from dataclasses import dataclass

from ...errors import DomainError
from .base import Repo


@dataclass
class Vendor:
    vendor_id: int | None
    name: str
    contact_info: str | None
    address: str | None


class VendorsRepo(Repo):

    def list_vendors(self) -> list[Vendor]:
        rows = self.conn.execute(
            "SELECT vendor_id, name, contact_info, address FROM vendors ORDER BY name"
        ).fetchall()
        return [Vendor(**dict(r)) for r in rows]

    def get(self, vendor_id: int) -> Vendor | None:
        r = self.conn.execute(
            "SELECT vendor_id, name, contact_info, address FROM vendors WHERE vendor_id=?",
            (vendor_id,)
        ).fetchone()
        return Vendor(**dict(r)) if r else None

    def create(self, name: str, contact_info: str | None = None, address: str | None = None) -> int:
        name = (name or "").strip()
        if not name:
            raise DomainError("Vendor name is required.")
        if self.conn.execute(
            "SELECT 1 FROM vendors WHERE lower(name) = lower(?)", (name,)
        ).fetchone():
            raise DomainError(f"A vendor named '{name}' already exists.")
        with self._immediate_tx():
            cur = self.conn.execute(
                "INSERT INTO vendors(name, contact_info, address) VALUES (?, ?, ?)",
                (name, contact_info or None, address or None)
            )
            return int(cur.lastrowid)
