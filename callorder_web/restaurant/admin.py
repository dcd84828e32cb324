from django.contrib import admin
from django.utils.html import format_html

from restaurant.models import (
    MenuCategory, MenuItem, NotificationLog, Order, OrderLine, PrintJob, Restaurant, StaffAccount,
)
from shared.utils import format_money


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    readonly_fields = ('menu_item', 'name', 'unit_price', 'quantity', 'notes')
    can_delete = False


class PrintJobInline(admin.TabularInline):
    model = PrintJob
    extra = 0
    readonly_fields = ('trigger', 'external_id', 'status', 'error', 'created_at')
    can_delete = False


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    list_display = ('name', 'voice_line_id', 'voice_phone_number', 'online_display', 'ai_enabled', 'busy_mode_enabled')
    list_filter = ('is_online', 'busy_mode_enabled', 'is_system')
    search_fields = ('name', 'email', 'voice_line_id', 'voice_phone_number')
    readonly_fields = ('id', 'last_login_at', 'created_at', 'updated_at')

    fieldsets = (
        ('Profile', {
            'fields': ('id', 'name', 'email', 'phone', 'address', 'is_system')
        }),
        ('Pricing', {
            'fields': ('tax_rate', 'delivery_fee', 'minimum_order')
        }),
        ('Call routing', {
            'fields': ('voice_line_id', 'voice_phone_number', 'staff_phone', 'is_online',
                       'ai_enabled', 'busy_mode_enabled', 'busy_hours')
        }),
        ('Integrations', {
            'fields': ('config_json',),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('last_login_at', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def online_display(self, obj):
        color = 'green' if obj.is_online else 'gray'
        label = 'Online' if obj.is_online else 'Offline'
        return format_html('<span style="color: {};">{}</span>', color, label)
    online_display.short_description = 'Staff'


@admin.register(StaffAccount)
class StaffAccountAdmin(admin.ModelAdmin):
    list_display = ('email', 'role', 'restaurant', 'created_at')
    list_filter = ('role',)
    search_fields = ('email',)
    exclude = ('password',)


@admin.register(MenuCategory)
class MenuCategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'restaurant', 'display_order')
    list_filter = ('restaurant',)
    list_editable = ('display_order',)


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ('name', 'restaurant', 'category', 'price', 'available')
    list_filter = ('restaurant', 'available')
    search_fields = ('name',)
    list_editable = ('available',)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('restaurant', 'category')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'restaurant', 'customer_name', 'customer_phone', 'status', 'source', 'total_display', 'created_at')
    list_filter = ('status', 'source', 'order_type', 'payment_status', 'restaurant')
    search_fields = ('order_number', 'customer_name', 'customer_phone')
    readonly_fields = ('order_number', 'subtotal', 'tax', 'delivery_fee', 'total', 'status', 'created_at', 'updated_at')
    inlines = [OrderLineInline, PrintJobInline]

    def get_queryset(self, request):
        """Optimize query with select_related"""
        qs = super().get_queryset(request)
        return qs.select_related('restaurant')

    def total_display(self, obj):
        return format_money(obj.total)
    total_display.short_description = 'Total'


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ('order', 'destination', 'status', 'receipt_id', 'created_at')
    list_filter = ('status',)
    readonly_fields = ('order', 'destination', 'message', 'receipt_id', 'status', 'created_at')
