from sqlalchemy import Column, Date, Index, Numeric, String

from models.base import Base


class Transaction(Base):
    """
    Customer transactions, one-to-many with ``customer`` through
    ``customer_number``.

    Design:
    - No foreign key to customer: detail rows may exist without a master
    - The physical table has no key; the ORM maps (customer_number, number)
      as primary key so imports can merge idempotently
    - ``amount`` has no fixed scale: amounts are stored as given and only
      balances are rounded
    """
    __tablename__ = "transaction"

    customer_number = Column(String(3), primary_key=True)
    number = Column(String(8), primary_key=True)
    amount = Column(Numeric(asdecimal=True), nullable=True)
    transaction_date = Column(Date, nullable=True)

    __table_args__ = (
        Index("idx_transaction_customer", "customer_number"),
    )
