"""Student reference model (owned by the student directory, read by billing)"""

from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship

from schoolfees.models.base import BaseModel, StatusMixin


class Student(BaseModel, StatusMixin):
    """
    Enrolled student as seen by the fee subsystem.
    Billing only reads the class (for fee applicability) and display fields.
    """
    __tablename__ = "students"

    full_name = Column(String(255), nullable=False)
    admission_no = Column(String(50), nullable=True, unique=True)
    father_name = Column(String(255), nullable=True)
    class_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    class_name = Column(String(100), nullable=True)
    fee_category = Column(String(50), nullable=True)

    # Relationships
    fee_assignments = relationship("StudentFeeAssignment", back_populates="student")
    invoices = relationship("FeeInvoice", back_populates="student")

    def __repr__(self) -> str:
        return f"<Student {self.admission_no or self.id} ({self.full_name})>"
