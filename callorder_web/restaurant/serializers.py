from rest_framework import serializers

from restaurant.models import MenuCategory, MenuItem, Order, OrderLine, PrintJob, Restaurant
from shared.utils import format_money


class RestaurantSerializer(serializers.ModelSerializer):
    effective_tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4, read_only=True)
    effective_delivery_fee = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Restaurant
        fields = [
            'id', 'name', 'email', 'phone', 'address',
            'tax_rate', 'delivery_fee', 'minimum_order', 'effective_tax_rate', 'effective_delivery_fee',
            'is_online', 'ai_enabled', 'busy_mode_enabled', 'busy_hours',
            'voice_line_id', 'voice_phone_number', 'staff_phone', 'is_system',
            'last_login_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class MenuCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuCategory
        fields = ['id', 'name', 'display_order', 'created_at']
        read_only_fields = fields


class MenuItemSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)

    class Meta:
        model = MenuItem
        fields = [
            'id', 'category', 'category_name', 'name', 'description', 'price',
            'available', 'customizations', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class OrderLineSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=16, decimal_places=6, read_only=True)

    class Meta:
        model = OrderLine
        fields = ['id', 'menu_item', 'name', 'unit_price', 'quantity', 'notes', 'line_total']
        read_only_fields = fields


class PrintJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = PrintJob
        fields = ['id', 'trigger', 'external_id', 'status', 'error', 'created_at']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    lines = OrderLineSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    total_display = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'restaurant', 'order_number', 'customer_name', 'customer_phone',
            'delivery_address', 'order_type', 'lines',
            'subtotal', 'tax', 'delivery_fee', 'total', 'total_display',
            'payment_method', 'payment_status', 'payment_url',
            'status', 'status_display', 'source', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_total_display(self, obj):
        return format_money(obj.total)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class OnlineStatusSerializer(serializers.Serializer):
    is_online = serializers.BooleanField()


class PaymentConfirmationSerializer(serializers.Serializer):
    link_id = serializers.CharField()


class CallEventSerializer(serializers.Serializer):
    destinationLine = serializers.CharField()
    originLine = serializers.CharField(required=False, allow_blank=True, default='')
    callId = serializers.CharField(required=False, allow_blank=True, default='')
