"""
Restaurant domain models: tenants, staff, menu, orders and side-effect records.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models

from restaurant.validators import validate_busy_hours
from shared.exceptions import ValidationError


DEFAULT_TAX_RATE = Decimal('0.08')
DEFAULT_DELIVERY_FEE = Decimal('5.00')


class Restaurant(models.Model):
    """Tenant restaurant - the unit of data isolation"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=300, verbose_name='Name')
    email = models.EmailField(blank=True, default='', verbose_name='Email')
    phone = models.CharField(max_length=32, blank=True, default='', verbose_name='Phone')
    address = models.TextField(blank=True, default='', verbose_name='Address')

    tax_rate = models.DecimalField(
        max_digits=6, decimal_places=4, null=True, blank=True,
        verbose_name='Tax rate',
        help_text='Fraction, e.g. 0.0800. Empty means the platform default.'
    )
    delivery_fee = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        verbose_name='Delivery fee'
    )
    minimum_order = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        verbose_name='Minimum order'
    )

    is_online = models.BooleanField(default=False, verbose_name='Staff online')
    ai_enabled = models.BooleanField(
        null=True, blank=True, default=None,
        verbose_name='AI enabled',
        help_text='Only an explicit "No" disables AI call handling.'
    )
    busy_mode_enabled = models.BooleanField(default=False, verbose_name='Busy mode (manual)')
    busy_hours = models.JSONField(
        default=list, blank=True,
        verbose_name='Busy hours',
        help_text='List of {"day", "start", "end", "enabled"} entries, times as HH:MM.'
    )

    voice_line_id = models.CharField(
        max_length=100, unique=True, null=True, blank=True,
        verbose_name='Voice line ID'
    )
    voice_phone_number = models.CharField(
        max_length=32, unique=True, null=True, blank=True,
        verbose_name='Voice phone number'
    )
    staff_phone = models.CharField(max_length=32, blank=True, default='', verbose_name='Staff forwarding number')

    is_system = models.BooleanField(default=False, verbose_name='Platform tenant')
    config_json = models.JSONField(
        default=dict, blank=True,
        verbose_name='Integration settings',
        help_text='Per-tenant overrides (sms, payments, printing).'
    )

    last_login_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Restaurant'
        verbose_name_plural = 'Restaurants'
        ordering = ['name']
        db_table = 'restaurant'

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()
        try:
            self.busy_hours = validate_busy_hours(self.busy_hours)
        except ValidationError as e:
            raise DjangoValidationError({'busy_hours': e.message})

    @property
    def effective_tax_rate(self) -> Decimal:
        return self.tax_rate if self.tax_rate is not None else DEFAULT_TAX_RATE

    @property
    def effective_delivery_fee(self) -> Decimal:
        return self.delivery_fee if self.delivery_fee is not None else DEFAULT_DELIVERY_FEE

    def get_config_value(self, key: str, default=None):
        """
        Get a value from config_json.
        Supports dot notation for nested keys.

        Args:
            key: Configuration key (e.g., "sms.sender_number")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if not self.config_json:
            return default

        value = self.config_json
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value if value is not None else default


class StaffAccount(models.Model):
    """Dashboard user. Platform operators have no restaurant binding."""

    ROLE_SUPER_ADMIN = 'super_admin'
    ROLE_OWNER = 'restaurant_owner'
    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, 'Platform operator'),
        (ROLE_OWNER, 'Restaurant owner'),
    ]

    email = models.EmailField(unique=True)
    password = models.CharField(max_length=256)
    role = models.CharField(max_length=32, choices=ROLE_CHOICES, default=ROLE_OWNER)
    restaurant = models.ForeignKey(
        Restaurant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='staff',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Staff account'
        verbose_name_plural = 'Staff accounts'
        db_table = 'staff_account'

    def __str__(self):
        return f"{self.email} ({self.role})"


class AccessToken(models.Model):
    """Opaque bearer token issued at login"""

    key = models.CharField(max_length=64, unique=True, db_index=True)
    account = models.ForeignKey(StaffAccount, on_delete=models.CASCADE, related_name='tokens')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'access_token'

    def __str__(self):
        return f"Token for {self.account.email}"


class MenuCategory(models.Model):
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=200)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Menu category'
        verbose_name_plural = 'Menu categories'
        ordering = ['display_order', 'id']
        db_table = 'menu_category'

    def __str__(self):
        return self.name


class MenuItem(models.Model):
    """Menu item. Deleting its category leaves the item uncategorized."""

    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='menu_items')
    category = models.ForeignKey(
        MenuCategory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='items',
    )
    name = models.CharField(max_length=300)
    description = models.TextField(blank=True, default='')
    price = models.DecimalField(max_digits=10, decimal_places=2)
    available = models.BooleanField(default=True)
    customizations = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Menu item'
        verbose_name_plural = 'Menu items'
        ordering = ['name']
        db_table = 'menu_item'
        indexes = [
            models.Index(fields=['restaurant', 'available'], name='menu_item_restaur_avail_idx'),
        ]

    def __str__(self):
        return f"{self.name} - {self.price}"


class Order(models.Model):
    """Customer order. Money fields keep full precision; round only for display."""

    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Awaiting action'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    TYPE_DELIVERY = 'delivery'
    TYPE_PICKUP = 'pickup'
    TYPE_CHOICES = [
        (TYPE_DELIVERY, 'Delivery'),
        (TYPE_PICKUP, 'Pickup'),
    ]

    SOURCE_PHONE = 'phone'
    SOURCE_DASHBOARD = 'dashboard'
    SOURCE_CHOICES = [
        (SOURCE_PHONE, 'Phone'),
        (SOURCE_DASHBOARD, 'Dashboard'),
    ]

    PAYMENT_CARD = 'card'
    PAYMENT_CASH = 'cash'
    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_CARD, 'Card'),
        (PAYMENT_CASH, 'Cash'),
    ]

    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='orders')
    order_number = models.CharField(max_length=64, db_index=True)

    customer_name = models.CharField(max_length=300)
    customer_phone = models.CharField(max_length=32, blank=True, default='', db_index=True)
    delivery_address = models.TextField(blank=True, default='')
    order_type = models.CharField(max_length=16, choices=TYPE_CHOICES)

    subtotal = models.DecimalField(max_digits=16, decimal_places=6)
    tax = models.DecimalField(max_digits=16, decimal_places=6)
    delivery_fee = models.DecimalField(max_digits=16, decimal_places=6)
    total = models.DecimalField(max_digits=16, decimal_places=6)

    payment_method = models.CharField(max_length=16, choices=PAYMENT_METHOD_CHOICES, default=PAYMENT_CASH)
    payment_status = models.CharField(max_length=16, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_link_id = models.CharField(max_length=128, blank=True, default='', db_index=True)
    payment_url = models.URLField(max_length=500, blank=True, default='')

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    source = models.CharField(max_length=16, choices=SOURCE_CHOICES)
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-created_at']
        db_table = 'order'
        indexes = [
            models.Index(fields=['restaurant', '-created_at'], name='order_restaur_created_idx'),
            models.Index(fields=['restaurant', 'status'], name='order_restaur_status_idx'),
        ]

    def __str__(self):
        return f"{self.order_number} - {self.customer_name} - {self.get_status_display()}"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES


class OrderLine(models.Model):
    """Line item snapshot taken at order creation"""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='lines')
    menu_item = models.ForeignKey(
        MenuItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    name = models.CharField(max_length=300)
    unit_price = models.DecimalField(max_digits=16, decimal_places=6)
    quantity = models.PositiveIntegerField()
    notes = models.CharField(max_length=500, blank=True, default='')

    class Meta:
        ordering = ['id']
        db_table = 'order_line'

    def __str__(self):
        return f"{self.name} × {self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class PrintJob(models.Model):
    """Durable print-job record; one per (order, trigger)"""

    TRIGGER_COMPLETED = 'completed'

    STATUS_QUEUED = 'queued'
    STATUS_SENT = 'sent'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_QUEUED, 'Queued'),
        (STATUS_SENT, 'Sent'),
        (STATUS_FAILED, 'Failed'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='print_jobs')
    trigger = models.CharField(max_length=32, default=TRIGGER_COMPLETED)
    external_id = models.CharField(max_length=128, blank=True, default='')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_QUEUED)
    error = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        db_table = 'print_job'
        constraints = [
            models.UniqueConstraint(fields=['order', 'trigger'], name='print_job_once_per_trigger'),
        ]

    def __str__(self):
        return f"Print {self.order_id} ({self.trigger}) - {self.status}"


class NotificationLog(models.Model):
    """Customer notification attempt"""

    STATUS_SENT = 'sent'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_SENT, 'Sent'),
        (STATUS_FAILED, 'Failed'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='notifications')
    destination = models.CharField(max_length=32)
    message = models.TextField()
    receipt_id = models.CharField(max_length=128, blank=True, default='')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        db_table = 'notification_log'

    def __str__(self):
        return f"{self.destination} - {self.status}"
