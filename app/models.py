import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate an opaque text primary key"""
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    password = Column(Text, nullable=False)  # bcrypt hash
    # user, admin, superadmin, manager, cashier, inventory_manager, dispatcher, crew
    role = Column(String(50), default="user", nullable=False)
    contact_number = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    default_address = Column(Text, nullable=True)  # For home service bookings
    branch_location = Column(String(255), nullable=False)
    profile_image = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    loyalty_points = Column(Integer, default=0, nullable=False)
    subscription_status = Column(String(20), default="free", nullable=False)  # free, classic, vip-silver, vip-gold
    subscription_expiry = Column(DateTime, nullable=True)
    can_view_all_branches = Column(Boolean, default=False, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="user")
    subscriptions = relationship("PackageSubscription", back_populates="user")


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(64), primary_key=True, default=generate_id)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    session_token = Column(String(128), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="sessions")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True, default=generate_id)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)  # null for guests
    guest_info = Column(JSON, nullable=True)  # {"firstName", "lastName", "email", "phone"}
    type = Column(String(20), default="guest", nullable=False)  # registered, guest
    confirmation_code = Column(String(50), unique=True, nullable=False)

    # Service details
    category = Column(String(50), nullable=False)  # carwash, auto_detailing, graphene_coating
    service = Column(String(255), nullable=False)
    service_type = Column(String(20), default="branch", nullable=False)  # branch, home

    # Vehicle details
    unit_type = Column(String(20), default="car", nullable=False)  # car, motorcycle
    unit_size = Column(String(50), nullable=True)
    plate_number = Column(String(20), nullable=True)
    vehicle_model = Column(String(255), nullable=True)

    # Schedule details
    date = Column(String(20), nullable=False, index=True)  # YYYY-MM-DD
    time_slot = Column(String(50), nullable=False)
    branch = Column(String(255), nullable=False, index=True)
    service_location = Column(Text, nullable=True)
    estimated_duration = Column(Integer, nullable=True)  # minutes

    # Contact
    full_name = Column(String(255), nullable=False)
    mobile = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)

    # Pricing
    base_price = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)
    currency = Column(String(10), default="PHP", nullable=False)
    voucher_code = Column(String(100), nullable=True)
    voucher_discount = Column(Float, default=0.0)

    # Payment
    payment_method = Column(String(50), nullable=True)  # cash, card, gcash, bank, online
    payment_status = Column(String(50), default="pending", nullable=False)
    receipt_url = Column(Text, nullable=True)

    # pending, confirmed, in_progress, completed, cancelled
    status = Column(String(50), default="pending", nullable=False, index=True)
    notes = Column(Text, nullable=True)
    special_requests = Column(Text, nullable=True)

    points_earned = Column(Integer, default=0)
    assigned_crew = Column(JSON, nullable=True)
    crew_notes = Column(Text, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    customer_rating = Column(Float, nullable=True)
    customer_feedback = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="bookings")
    status_history = relationship(
        "BookingStatusHistory", back_populates="booking", cascade="all, delete-orphan"
    )


class BookingStatusHistory(Base):
    __tablename__ = "booking_status_history"

    id = Column(String(64), primary_key=True, default=generate_id)
    booking_id = Column(String(64), ForeignKey("bookings.id"), nullable=False, index=True)
    from_status = Column(String(50), nullable=True)
    to_status = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    changed_by = Column(String(64), nullable=True)  # User ID who made the change
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="status_history")


class PackageSubscription(Base):
    __tablename__ = "package_subscriptions"

    id = Column(String(64), primary_key=True, default=generate_id)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    package_id = Column(String(64), nullable=False)
    status = Column(String(50), default="pending", nullable=False)  # pending, active, cancelled, expired
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    auto_renew = Column(Boolean, default=True)
    original_price = Column(Float, nullable=False)
    discount_applied = Column(Float, default=0.0)
    final_price = Column(Float, nullable=False)
    payment_method = Column(String(50), nullable=True)
    payment_status = Column(String(50), default="pending")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="subscriptions")


class SystemNotification(Base):
    __tablename__ = "system_notifications"

    id = Column(String(64), primary_key=True, default=generate_id)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(20), default="medium", nullable=False)  # low, medium, high, urgent
    target_roles = Column(JSON, default=list, nullable=False)
    target_users = Column(JSON, nullable=True)
    data = Column(JSON, nullable=True)
    read_by = Column(JSON, default=list, nullable=False)  # [{"userId": ..., "readAt": ...}]
    play_sound = Column(Boolean, default=False)
    sound_type = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now(), index=True)


class AdminSetting(Base):
    __tablename__ = "admin_settings"

    id = Column(String(64), primary_key=True, default=generate_id)
    key = Column(String(255), unique=True, index=True, nullable=False)
    value = Column(JSON, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)  # booking, notification, general, pricing
    is_public = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Ad(Base):
    __tablename__ = "ads"

    id = Column(String(64), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    duration = Column(String(20), nullable=False)  # weekly, monthly, yearly
    is_active = Column(Boolean, default=True, nullable=False)
    target_pages = Column(JSON, default=list, nullable=False)  # ["welcome", "dashboard"]
    admin_email = Column(String(255), nullable=False)
    impressions = Column(Integer, default=0)
    clicks = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class AdDismissal(Base):
    __tablename__ = "ad_dismissals"

    id = Column(String(64), primary_key=True, default=generate_id)
    ad_id = Column(String(64), ForeignKey("ads.id"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    dismissed_at = Column(DateTime, server_default=func.now())


class Branch(Base):
    __tablename__ = "branches"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    code = Column(String(20), unique=True, nullable=False)  # Short code like 'MNL01'
    type = Column(String(50), default="full_service", nullable=False)  # full_service, express, mobile, kiosk
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    country = Column(String(100), default="Philippines", nullable=False)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    timezone = Column(String(100), default="Asia/Manila")
    manager_name = Column(String(255), nullable=True)
    capacity = Column(Integer, default=10)  # Max concurrent services
    services = Column(JSON, default=list, nullable=False)
    operating_hours = Column(JSON, nullable=True)  # {"monday": {"open": "08:00", "close": "20:00"}, ...}
    is_active = Column(Boolean, default=True, nullable=False)
    is_main_branch = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ServicePackage(Base):
    __tablename__ = "service_packages"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False)  # carwash, detailing, coating, subscription
    type = Column(String(50), default="single", nullable=False)  # single, recurring, bundle
    base_price = Column(Float, nullable=False)
    currency = Column(String(10), default="PHP", nullable=False)
    duration = Column(String(50), nullable=True)  # Daily, Weekly, Monthly, Yearly
    features = Column(JSON, default=list, nullable=False)
    vehicle_types = Column(JSON, default=lambda: ["car"], nullable=False)
    car_price = Column(Float, nullable=True)
    motorcycle_price = Column(Float, nullable=True)
    suv_price = Column(Float, nullable=True)
    truck_price = Column(Float, nullable=True)
    color = Column(String(50), default="#f97316")
    is_active = Column(Boolean, default=True, nullable=False)
    is_popular = Column(Boolean, default=False)
    is_featured = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class CustomerLevel(Base):
    __tablename__ = "customer_levels"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    min_points = Column(Integer, nullable=False)
    max_points = Column(Integer, nullable=True)  # null = open-ended top tier
    discount_percentage = Column(Float, default=0.0)
    special_perks = Column(JSON, default=list)
    badge_color = Column(String(50), default="#6B7280")
    is_active = Column(Boolean, default=True)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PosCategory(Base):
    __tablename__ = "pos_categories"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    color = Column(String(50), default="#F97316")
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PosTransaction(Base):
    __tablename__ = "pos_transactions"

    id = Column(String(64), primary_key=True, default=generate_id)
    transaction_number = Column(String(50), unique=True, nullable=False)
    customer_id = Column(String(64), nullable=True)  # null for walk-in customers
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(20), nullable=True)
    type = Column(String(50), default="sale", nullable=False)  # sale, refund, void
    status = Column(String(50), default="completed", nullable=False)
    branch_id = Column(String(64), default="default", nullable=False, index=True)
    cashier_id = Column(String(64), default="unknown", nullable=False)
    cashier_name = Column(String(255), default="Unknown", nullable=False)
    subtotal = Column(Float, nullable=False)
    tax_amount = Column(Float, default=0.0)
    discount_amount = Column(Float, default=0.0)
    total_amount = Column(Float, nullable=False)
    payment_method = Column(String(50), nullable=False)  # cash, card, gcash, bank
    payment_reference = Column(String(255), nullable=True)
    amount_paid = Column(Float, nullable=False)
    change_amount = Column(Float, default=0.0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "PosTransactionItem", back_populates="transaction", cascade="all, delete-orphan"
    )


class PosTransactionItem(Base):
    __tablename__ = "pos_transaction_items"

    id = Column(String(64), primary_key=True, default=generate_id)
    transaction_id = Column(String(64), ForeignKey("pos_transactions.id"), nullable=False, index=True)
    product_id = Column(String(64), nullable=True)
    item_name = Column(String(255), nullable=False)
    item_sku = Column(String(100), nullable=True)
    item_category = Column(String(100), nullable=True)
    unit_price = Column(Float, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    subtotal = Column(Float, nullable=False)
    final_price = Column(Float, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    transaction = relationship("PosTransaction", back_populates="items")


class PosSession(Base):
    __tablename__ = "pos_sessions"

    id = Column(String(64), primary_key=True, default=generate_id)
    status = Column(String(20), default="open", nullable=False)  # open, closed
    session_date = Column(DateTime, nullable=False)
    cashier_id = Column(String(64), nullable=False, index=True)
    cashier_name = Column(String(255), nullable=False)
    branch_id = Column(String(64), nullable=False)
    opening_balance = Column(Float, nullable=False)
    opened_at = Column(DateTime, nullable=False)
    closing_balance = Column(Float, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    total_cash_sales = Column(Float, default=0.0)
    total_card_sales = Column(Float, default=0.0)
    total_gcash_sales = Column(Float, default=0.0)
    total_bank_sales = Column(Float, default=0.0)
    total_expenses = Column(Float, default=0.0)
    expected_cash = Column(Float, nullable=True)  # opening + cash sales - expenses
    actual_cash = Column(Float, nullable=True)
    cash_variance = Column(Float, nullable=True)
    expected_digital = Column(Float, nullable=True)  # card + gcash + bank
    actual_digital = Column(Float, nullable=True)
    digital_variance = Column(Float, nullable=True)
    remittance_notes = Column(Text, nullable=True)
    is_balanced = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    expenses = relationship("PosExpense", back_populates="session", cascade="all, delete-orphan")


class PosExpense(Base):
    __tablename__ = "pos_expenses"

    id = Column(String(64), primary_key=True, default=generate_id)
    pos_session_id = Column(String(64), ForeignKey("pos_sessions.id"), nullable=False, index=True)
    category = Column(String(100), nullable=False)  # supplies, utilities, rent, maintenance, fuel, other
    description = Column(String(255), nullable=False)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(50), default="cash", nullable=False)
    notes = Column(Text, nullable=True)
    recorded_by = Column(String(64), nullable=False)
    recorded_by_name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    session = relationship("PosSession", back_populates="expenses")


class Voucher(Base):
    __tablename__ = "vouchers"

    id = Column(String(64), primary_key=True, default=generate_id)
    code = Column(String(100), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    discount_type = Column(String(20), nullable=False)  # percentage, fixed
    discount_value = Column(Float, nullable=False)
    minimum_amount = Column(Float, default=0.0)
    audience = Column(String(20), default="registered", nullable=False)  # registered, all
    valid_from = Column(DateTime, nullable=True)
    valid_until = Column(DateTime, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    per_user_limit = Column(Integer, default=1)
    total_used = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class VoucherRedemption(Base):
    __tablename__ = "voucher_redemptions"

    id = Column(String(64), primary_key=True, default=generate_id)
    voucher_code = Column(String(100), nullable=False, index=True)
    user_email = Column(String(255), nullable=True)
    booking_id = Column(String(64), nullable=True)
    discount_amount = Column(Float, nullable=False)
    redeemed_at = Column(DateTime, server_default=func.now())


class FcmToken(Base):
    __tablename__ = "fcm_tokens"

    id = Column(String(64), primary_key=True, default=generate_id)
    token = Column(Text, unique=True, nullable=False)
    user_id = Column(String(64), nullable=True, index=True)  # null for anonymous tokens
    device_type = Column(String(50), default="web")  # web, android, ios
    browser_info = Column(Text, nullable=True)
    device_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    notification_types = Column(JSON, default=lambda: ["booking_updates", "loyalty_updates", "system"])
    last_used = Column(DateTime, server_default=func.now())
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PushNotification(Base):
    __tablename__ = "push_notifications"

    id = Column(String(64), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    target_type = Column(String(50), nullable=False)  # user, users, all
    target_ids = Column(JSON, nullable=True)
    notification_type = Column(String(100), nullable=False)
    data = Column(JSON, nullable=True)
    total_targets = Column(Integer, default=0)
    successful_deliveries = Column(Integer, default=0)
    failed_deliveries = Column(Integer, default=0)
    status = Column(String(50), default="pending")  # pending, sending, sent, failed
    sent_at = Column(DateTime, nullable=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
