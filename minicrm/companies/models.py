from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from minicrm.models.base import Base, TimestampMixin


class Company(TimestampMixin, Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, index=True)
    website: Mapped[str | None] = mapped_column(String(255))
    logo: Mapped[str | None] = mapped_column(String(255))

    employees: Mapped[list["Employee"]] = relationship(  # noqa: F821
        back_populates="company",
        cascade="all, delete-orphan",
        order_by="Employee.id",
    )
