from decimal import Decimal

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction

from restaurant.models import MenuCategory, MenuItem, Restaurant, StaffAccount
from restaurant.services.order_service import OrderService


class Command(BaseCommand):
    help = 'Create a platform operator and a demo restaurant with menu and orders'

    def add_arguments(self, parser):
        parser.add_argument('--admin-email', default='admin@example.com')
        parser.add_argument('--admin-password', default='superadmin123')
        parser.add_argument('--owner-email', default='admin@pizzapalace.example.com')
        parser.add_argument('--owner-password', default='admin123')
        parser.add_argument('--with-orders', action='store_true', help='Also create a few demo orders')

    def handle(self, *args, **options):
        menu_data = [
            {'category': 'Pizza', 'name': 'Margherita Pizza',
             'description': 'Classic tomato sauce, fresh mozzarella, and basil', 'price': '12.99'},
            {'category': 'Pizza', 'name': 'Pepperoni Pizza',
             'description': 'Loaded with pepperoni and extra cheese', 'price': '14.99'},
            {'category': 'Burgers', 'name': 'Classic Burger',
             'description': 'Beef patty, lettuce, tomato, onion, pickles', 'price': '9.99'},
            {'category': 'Drinks', 'name': 'Coca Cola',
             'description': 'Chilled Coca Cola', 'price': '2.99'},
        ]

        with transaction.atomic():
            Restaurant.objects.get_or_create(
                name='System Administration', is_system=True,
            )
            admin, created = StaffAccount.objects.update_or_create(
                email=options['admin_email'],
                defaults={
                    'password': make_password(options['admin_password']),
                    'role': StaffAccount.ROLE_SUPER_ADMIN,
                    'restaurant': None,
                },
            )
            self.stdout.write(f"{'Created' if created else 'Updated'} platform operator {admin.email}")

            restaurant, created = Restaurant.objects.update_or_create(
                voice_line_id='0f119cbc-d543-484f-8ee5-e5341fe88458',
                defaults={
                    'name': 'Pizza Palace',
                    'phone': '+12075075278',
                    'email': options['owner_email'],
                    'address': '123 Pizza St, Food City, FC 12345',
                    'voice_phone_number': '+12075075278',
                    'busy_hours': [
                        {'day': 'friday', 'start': '18:00', 'end': '21:00', 'enabled': True},
                        {'day': 'saturday', 'start': '18:00', 'end': '21:00', 'enabled': True},
                    ],
                },
            )
            self.stdout.write(f"{'Created' if created else 'Updated'} restaurant {restaurant.name}")

            StaffAccount.objects.update_or_create(
                email=options['owner_email'],
                defaults={
                    'password': make_password(options['owner_password']),
                    'role': StaffAccount.ROLE_OWNER,
                    'restaurant': restaurant,
                },
            )

            created_count = 0
            updated_count = 0
            categories = {}
            for item_data in menu_data:
                category_name = item_data['category']
                if category_name not in categories:
                    categories[category_name], _ = MenuCategory.objects.get_or_create(
                        restaurant=restaurant, name=category_name,
                        defaults={'display_order': len(categories)},
                    )
                _, created = MenuItem.objects.update_or_create(
                    restaurant=restaurant,
                    name=item_data['name'],
                    defaults={
                        'category': categories[category_name],
                        'description': item_data['description'],
                        'price': Decimal(item_data['price']),
                        'available': True,
                    },
                )
                if created:
                    created_count += 1
                else:
                    updated_count += 1

        self.stdout.write(f'Menu items: {created_count} created, {updated_count} updated')

        if options['with_orders']:
            self._create_orders(restaurant)

        self.stdout.write(self.style.SUCCESS('Demo data ready'))

    def _create_orders(self, restaurant):
        service = OrderService()
        orders = [
            ({'name': 'John Doe', 'phone': '+1234567890', 'address': '123 Main St, City'},
             'delivery', [{'name': 'Margherita Pizza', 'quantity': 1, 'price': '12.99'}]),
            ({'name': 'Jane Smith', 'phone': '+1987654321', 'address': '456 Oak Ave, City'},
             'delivery', [{'name': 'Pepperoni Pizza', 'quantity': 2, 'price': '14.99'}]),
            ({'name': 'Bob Johnson', 'phone': '+1555123456', 'address': ''},
             'pickup', [{'name': 'Classic Burger', 'quantity': 1, 'price': '9.99'}]),
        ]
        for customer, order_type, items in orders:
            result = service.create_order(
                restaurant=restaurant,
                customer=customer,
                order_type=order_type,
                line_items=items,
                source='phone',
            )
            self.stdout.write(f'Order {result.order.order_number} for {customer["name"]}')
