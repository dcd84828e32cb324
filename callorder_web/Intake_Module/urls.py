from django.urls import path

from Intake_Module.health_views import health_check
from Intake_Module.views import (
    LoginView, logout, current_user,
    RestaurantListView, RestaurantDetailView, set_online_status,
    CategoryListView, CategoryDetailView, MenuItemListView, MenuItemDetailView,
    OrderListView, OrderDetailView, update_order_status, confirm_payment,
    analytics_summary, VoiceToolsView, inbound_call, staff_no_answer,
)

app_name = 'intake'

urlpatterns = [
    # Health check endpoint (for Docker healthchecks)
    path('healthz/', health_check, name='health_check'),

    # Dashboard auth
    path('api/auth/login/', LoginView.as_view(), name='api_login'),
    path('api/auth/logout/', logout, name='api_logout'),
    path('api/auth/me/', current_user, name='api_current_user'),

    # Restaurants
    path('api/restaurants/', RestaurantListView.as_view(), name='api_restaurants'),
    path('api/restaurants/<uuid:restaurant_id>/', RestaurantDetailView.as_view(), name='api_restaurant_detail'),
    path('api/restaurants/<uuid:restaurant_id>/online/', set_online_status, name='api_restaurant_online'),

    # Menu
    path('api/menu/categories/', CategoryListView.as_view(), name='api_categories'),
    path('api/menu/categories/<int:category_id>/', CategoryDetailView.as_view(), name='api_category_detail'),
    path('api/menu/items/', MenuItemListView.as_view(), name='api_menu_items'),
    path('api/menu/items/<int:item_id>/', MenuItemDetailView.as_view(), name='api_menu_item_detail'),

    # Orders
    path('api/orders/', OrderListView.as_view(), name='api_orders'),
    path('api/orders/<uuid:order_id>/', OrderDetailView.as_view(), name='api_order_detail'),
    path('api/orders/<uuid:order_id>/status/', update_order_status, name='api_update_status'),
    path('api/payments/confirm/', confirm_payment, name='api_confirm_payment'),

    # Analytics
    path('api/analytics/', analytics_summary, name='api_analytics'),

    # Voice agent and telephony webhooks
    path('api/voice/tools/', VoiceToolsView.as_view(), name='api_voice_tools'),
    path('api/calls/inbound/', inbound_call, name='api_inbound_call'),
    path('api/calls/no-answer/', staff_no_answer, name='api_staff_no_answer'),
]
