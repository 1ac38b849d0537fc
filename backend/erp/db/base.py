from backend.erp.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.erp.models.user import User  # noqa: F401
from backend.erp.models.employee import Employee  # noqa: F401
from backend.erp.models.facility import Facility  # noqa: F401
from backend.erp.models.school_class import SchoolClass  # noqa: F401
from backend.erp.models.student import Student  # noqa: F401
from backend.erp.models.lesson import Lesson  # noqa: F401
from backend.erp.models.teaching_session import TeachingSession  # noqa: F401
from backend.erp.models.invoice import Invoice  # noqa: F401
from backend.erp.models.invoice_item import InvoiceItem  # noqa: F401
from backend.erp.models.payment import Payment  # noqa: F401
