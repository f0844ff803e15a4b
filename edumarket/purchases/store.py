"""Purchase and enrollment stores.

Status changes are compare-and-set: the purchase row is only updated when it
still holds the expected status. The enrollment upsert follows as a separate
write, so AccessService makes transitions safe to retry.
"""

from typing import Protocol

from edumarket.core.database.cassandra import CassandraStore
from edumarket.purchases.models import EnrollmentRecord, PurchaseRecord, PurchaseStatus


class PurchaseStore(Protocol):
    """Lookup and write contract for purchases."""

    def find_by_id(self, purchase_id: str) -> PurchaseRecord | None: ...

    def insert(self, purchase: PurchaseRecord) -> PurchaseRecord: ...

    def list_by_user(self, user_id: str) -> list[PurchaseRecord]:
        """A user's purchases, newest first."""
        ...

    def transition_status(
        self, purchase: PurchaseRecord, target: PurchaseStatus
    ) -> bool:
        """Move purchase to target if the stored status still equals purchase.status.

        Returns False, leaving purchase untouched, when another writer changed
        the status first.
        """
        ...


class EnrollmentStore(Protocol):
    """Lookup and write contract for enrollments."""

    def find(self, user_id: str, course_id: str) -> EnrollmentRecord | None: ...

    def upsert(self, enrollment: EnrollmentRecord) -> EnrollmentRecord: ...


class CassandraPurchaseStore(CassandraStore):
    """PurchaseStore backed by Cassandra."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_purchase = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.purchases WHERE id = ?"
        )
        self._insert_purchase = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.purchases
            (id, user_id, course_id, status, payment_method, amount,
             purchase_date, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_purchase_by_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.purchases_by_user
            (user_id, purchase_date, purchase_id, course_id)
            VALUES (?, ?, ?, ?)
        """)
        self._list_purchase_ids_by_user = self.session.prepare(f"""
            SELECT purchase_id FROM {self.keyspace}.purchases_by_user
            WHERE user_id = ?
        """)
        self._update_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.purchases
            SET status = ?, updated_at = ?
            WHERE id = ?
            IF status = ?
        """)

    def find_by_id(self, purchase_id: str) -> PurchaseRecord | None:
        row = self._execute(self._get_purchase, [purchase_id]).one()
        return PurchaseRecord.from_row(row) if row else None

    def insert(self, purchase: PurchaseRecord) -> PurchaseRecord:
        purchase.touch()
        self._execute(
            self._insert_purchase,
            [
                purchase.id,
                purchase.user_id,
                purchase.course_id,
                purchase.status.value,
                purchase.payment_method,
                purchase.amount,
                purchase.purchase_date,
                purchase.updated_at,
            ],
        )
        self._execute(
            self._insert_purchase_by_user,
            [purchase.user_id, purchase.purchase_date, purchase.id, purchase.course_id],
        )
        return purchase

    def list_by_user(self, user_id: str) -> list[PurchaseRecord]:
        rows = self._execute(self._list_purchase_ids_by_user, [user_id])
        purchases = []
        for row in rows:
            purchase = self.find_by_id(row.purchase_id)
            if purchase:
                purchases.append(purchase)
        return purchases

    def transition_status(
        self, purchase: PurchaseRecord, target: PurchaseStatus
    ) -> bool:
        expected = purchase.status
        previous_updated_at = purchase.updated_at
        purchase.touch()
        result = self._execute(
            self._update_status,
            [target.value, purchase.updated_at, purchase.id, expected.value],
        )
        if not result.was_applied:
            purchase.updated_at = previous_updated_at
            return False
        purchase.status = target
        return True


class CassandraEnrollmentStore(CassandraStore):
    """EnrollmentStore backed by Cassandra."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE user_id = ? AND course_id = ?
        """)
        self._upsert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (user_id, course_id, id, purchase_id, has_access, enrolled_at,
             updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

    def find(self, user_id: str, course_id: str) -> EnrollmentRecord | None:
        row = self._execute(self._get_enrollment, [user_id, course_id]).one()
        return EnrollmentRecord.from_row(row) if row else None

    def upsert(self, enrollment: EnrollmentRecord) -> EnrollmentRecord:
        enrollment.touch()
        self._execute(
            self._upsert_enrollment,
            [
                enrollment.user_id,
                enrollment.course_id,
                enrollment.id,
                enrollment.purchase_id,
                enrollment.has_access,
                enrollment.enrolled_at,
                enrollment.updated_at,
            ],
        )
        return enrollment
