from sqlalchemy import Column, String

from models.base import Base


class Customer(Base):
    """
    Customer master table.

    Read ordered by ``number`` as the master stream of the
    table-to-file synchronization and exported by the SQL join job.
    """
    __tablename__ = "customer"

    number = Column(String(3), primary_key=True)
    address = Column(String(50), nullable=True)
    city = Column(String(30), nullable=True)
    first_name = Column(String(30), nullable=True)
    last_name = Column(String(30), nullable=True)
    post_code = Column(String(5), nullable=True)
    state = Column(String(2), nullable=True)
