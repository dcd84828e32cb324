import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from restaurant.serializers import (
    CallEventSerializer, LoginSerializer, MenuCategorySerializer, MenuItemSerializer,
    OnlineStatusSerializer, OrderSerializer, PaymentConfirmationSerializer,
    RestaurantSerializer, StatusUpdateSerializer,
)
from restaurant.services.analytics_service import AnalyticsService
from restaurant.services.auth_service import AuthService
from restaurant.services.call_router import CallRouter
from restaurant.services.menu_service import MenuService
from restaurant.services.order_service import OrderService
from restaurant.services.tenant_service import TenantService
from restaurant.services.voice_tool_service import VoiceToolService
from shared.authentication import HasWebhookSecret, IsOwnerOrOperator, IsPlatformOperator
from shared.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _restaurant_for(request: Request):
    """
    Restaurant a dashboard request acts on.
    Owners act on their own restaurant; operators name one with restaurant_id.
    """
    principal = request.user
    restaurant_id = principal.restaurant_id or request.data.get('restaurant_id') \
        or request.query_params.get('restaurant_id')
    if not restaurant_id:
        raise ValidationError('restaurant_id is required')
    return TenantService.get_tenant(restaurant_id, principal)


def _order_response(result, status_code=status.HTTP_200_OK):
    return Response({
        'success': True,
        'order': OrderSerializer(result.order).data,
        'degraded': result.degraded,
    }, status=status_code)


# Auth

class LoginView(APIView):
    """Exchange email and password for a bearer token"""
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request: Request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session = AuthService.login(serializer.validated_data['email'], serializer.validated_data['password'])
        principal = session['principal']
        return Response({
            'success': True,
            'token': session['token'],
            'user': {'id': principal.id, 'role': principal.role, 'restaurant_id': principal.restaurant_id},
        }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsOwnerOrOperator])
def logout(request):
    """Revoke the caller's token"""
    AuthService.logout(request.auth)
    return Response({'success': True}, status=status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsOwnerOrOperator])
def current_user(request):
    principal = request.user
    data = {'id': principal.id, 'role': principal.role, 'restaurant_id': principal.restaurant_id}
    if principal.restaurant_id:
        data['restaurant'] = RestaurantSerializer(
            TenantService.get_tenant(principal.restaurant_id, principal)
        ).data
    return Response(data, status=status.HTTP_200_OK)


# Tenants

class RestaurantListView(APIView):
    """List restaurants with stats, or create one (operator only)"""
    permission_classes = [IsOwnerOrOperator]

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsPlatformOperator()]
        return super().get_permissions()

    def get(self, request: Request):
        rows = TenantService.list_tenants(request.user)
        data = []
        for row in rows:
            entry = RestaurantSerializer(row['restaurant']).data
            entry['total_orders'] = row['total_orders']
            entry['total_revenue'] = str(row['total_revenue'])
            data.append(entry)
        return Response(data, status=status.HTTP_200_OK)

    def post(self, request: Request):
        profile = dict(request.data)
        owner = profile.pop('owner', None) or {}
        restaurant = TenantService.create_tenant(
            profile,
            request.user,
            owner_email=owner.get('email'),
            owner_password=owner.get('password'),
        )
        return Response(RestaurantSerializer(restaurant).data, status=status.HTTP_201_CREATED)


class RestaurantDetailView(APIView):
    permission_classes = [IsOwnerOrOperator]

    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [IsPlatformOperator()]
        return super().get_permissions()

    def get(self, request: Request, restaurant_id):
        restaurant = TenantService.get_tenant(restaurant_id, request.user)
        return Response(RestaurantSerializer(restaurant).data, status=status.HTTP_200_OK)

    def patch(self, request: Request, restaurant_id):
        restaurant = TenantService.update_settings(restaurant_id, dict(request.data), request.user)
        return Response(RestaurantSerializer(restaurant).data, status=status.HTTP_200_OK)

    def delete(self, request: Request, restaurant_id):
        deleted = TenantService.delete_tenant(restaurant_id, request.user)
        return Response({'success': True, 'deleted': deleted}, status=status.HTTP_200_OK)


@api_view(['PATCH'])
@permission_classes([IsOwnerOrOperator])
def set_online_status(request, restaurant_id):
    """Staff presence toggle from the dashboard"""
    serializer = OnlineStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    TenantService.get_tenant(restaurant_id, request.user)
    restaurant = TenantService.set_online_status(restaurant_id, serializer.validated_data['is_online'])
    return Response(RestaurantSerializer(restaurant).data, status=status.HTTP_200_OK)


# Menu

class CategoryListView(APIView):
    permission_classes = [IsOwnerOrOperator]

    def get(self, request: Request):
        categories = MenuService.list_categories(_restaurant_for(request))
        return Response(MenuCategorySerializer(categories, many=True).data, status=status.HTTP_200_OK)

    def post(self, request: Request):
        category = MenuService.create_category(_restaurant_for(request), request.data)
        return Response(MenuCategorySerializer(category).data, status=status.HTTP_201_CREATED)


class CategoryDetailView(APIView):
    permission_classes = [IsOwnerOrOperator]

    def patch(self, request: Request, category_id):
        category = MenuService.update_category(category_id, request.data, request.user)
        return Response(MenuCategorySerializer(category).data, status=status.HTTP_200_OK)

    def delete(self, request: Request, category_id):
        MenuService.delete_category(category_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MenuItemListView(APIView):
    """Menu items, optionally narrowed with ?category=<id>"""
    permission_classes = [IsOwnerOrOperator]

    def get(self, request: Request):
        items = MenuService.list_items(_restaurant_for(request), request.query_params.get('category'))
        return Response(MenuItemSerializer(items, many=True).data, status=status.HTTP_200_OK)

    def post(self, request: Request):
        item = MenuService.create_item(_restaurant_for(request), request.data)
        return Response(MenuItemSerializer(item).data, status=status.HTTP_201_CREATED)


class MenuItemDetailView(APIView):
    permission_classes = [IsOwnerOrOperator]

    def get(self, request: Request, item_id):
        item = MenuService.get_item(item_id, request.user)
        return Response(MenuItemSerializer(item).data, status=status.HTTP_200_OK)

    def patch(self, request: Request, item_id):
        item = MenuService.update_item(item_id, request.data, request.user)
        return Response(MenuItemSerializer(item).data, status=status.HTTP_200_OK)

    def delete(self, request: Request, item_id):
        MenuService.delete_item(item_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Orders

class OrderListView(APIView):
    """Orders newest first (?status= filter), or create a dashboard order"""
    permission_classes = [IsOwnerOrOperator]

    def get(self, request: Request):
        orders = OrderService().list_orders(request.user, request.query_params.get('status'))
        restaurant_id = request.query_params.get('restaurant_id')
        if restaurant_id and request.user.is_platform_operator:
            orders = orders.filter(restaurant=TenantService.get_tenant(restaurant_id, request.user))
        return Response(OrderSerializer(orders, many=True).data, status=status.HTTP_200_OK)

    def post(self, request: Request):
        data = request.data
        result = OrderService().create_order(
            restaurant=_restaurant_for(request),
            customer={
                'name': data.get('customer_name'),
                'phone': data.get('customer_phone'),
                'address': data.get('delivery_address'),
            },
            order_type=data.get('order_type'),
            line_items=data.get('items'),
            payment_method=data.get('payment_method', 'cash'),
            notes=data.get('notes', ''),
        )
        return _order_response(result, status.HTTP_201_CREATED)


class OrderDetailView(APIView):
    permission_classes = [IsOwnerOrOperator]

    def get(self, request: Request, order_id):
        order = OrderService().get_order(order_id, request.user)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    def patch(self, request: Request, order_id):
        order = OrderService().update_order(order_id, dict(request.data), request.user)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


@api_view(['PATCH'])
@permission_classes([IsOwnerOrOperator])
def update_order_status(request, order_id):
    """Update order status"""
    serializer = StatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = OrderService().transition_status(order_id, serializer.validated_data['status'], request.user)
    return _order_response(result)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([HasWebhookSecret])
def confirm_payment(request):
    """Payment provider confirmation callback"""
    serializer = PaymentConfirmationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = OrderService().confirm_payment(serializer.validated_data['link_id'])
    return _order_response(result)


# Analytics

@api_view(['GET'])
@permission_classes([IsOwnerOrOperator])
def analytics_summary(request):
    summary = AnalyticsService.get_summary(request.user)
    for key in ('completed', 'cancelled', 'today', 'week', 'month'):
        summary[key]['revenue'] = str(summary[key]['revenue'])
    return Response(summary, status=status.HTTP_200_OK)


# Voice agent and telephony

class VoiceToolsView(APIView):
    """
    Voice agent tool webhook.

    Tool failures, malformed single calls included, are returned inside
    results with HTTP 200. A malformed envelope or one without any tool
    call is rejected with 400.
    """
    authentication_classes = []
    permission_classes = [HasWebhookSecret]

    def post(self, request: Request):
        response = VoiceToolService().handle_request(request.data)
        return Response(response, status=status.HTTP_200_OK)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([HasWebhookSecret])
def inbound_call(request):
    """Routing directive for a new call"""
    serializer = CallEventSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    directive = CallRouter.route_inbound_call(serializer.validated_data)
    return Response(directive.to_dict(), status=status.HTTP_200_OK)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([HasWebhookSecret])
def staff_no_answer(request):
    """Staff did not answer within the ring timeout"""
    serializer = CallEventSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    directive = CallRouter.no_answer_fallback(serializer.validated_data)
    return Response(directive.to_dict(), status=status.HTTP_200_OK)
