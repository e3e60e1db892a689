from academy.models.activity_log import ActivityLog  # noqa: F401
from academy.models.batch import Batch, BatchMode  # noqa: F401
from academy.models.content import (  # noqa: F401
    BookMaterial,
    BookMaterialType,
    ContentType,
    Event,
    GradeExam,
    Notice,
)
from academy.models.course import Course  # noqa: F401
from academy.models.fee import (  # noqa: F401
    BillingCycle,
    Currency,
    FeeStructure,
    Invoice,
    InvoiceStatus,
    PaymentMethod,
)
from academy.models.location import Location  # noqa: F401
from academy.models.notification import Notification, NotificationType  # noqa: F401
from academy.models.user import ClassPreference, User, UserRole, UserStatus  # noqa: F401
from academy.models.inquiry import ContactMessage, DemoBooking, DemoBookingStatus  # noqa: F401
