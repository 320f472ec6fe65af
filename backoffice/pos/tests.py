"""
Test suite for billing: order totals, bill numbers, tables, the factory
delivery workflow, the overdue sweep and cake (KOT) orders
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backoffice.core.exceptions import DomainError
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.inventory import services as stock
from backoffice.inventory.models import Inventory
from backoffice.pos import services
from backoffice.pos.models import Order, Table, KotOrder


def item_payload(product, quantity='2', price='50.00', gst_rate=5, product_gst='5.00', sending_qty=None):
    item = {
        'product': product.id,
        'name': product.name,
        'quantity': quantity,
        'price': price,
        'unit': 'pcs',
        'gst_rate': gst_rate,
        'product_total': str(Decimal(quantity) * Decimal(price)),
        'product_gst': product_gst,
    }
    if sending_qty is not None:
        item['sending_qty'] = sending_qty
    return item


class BillNumberTests(TestCase):

    def test_bill_numbers_count_per_branch_per_day(self):
        main = TestDataFactory.create_branch(name='Main Street')
        north = TestDataFactory.create_branch(name='North Gate')
        today = timezone.localdate().strftime('%d%m%y')

        self.assertEqual(services.next_bill_no(main), f'MAI{today}01')
        self.assertEqual(services.next_bill_no(main), f'MAI{today}02')
        self.assertEqual(services.next_bill_no(north), f'NOR{today}01')

    def test_branches_sharing_a_prefix_get_distinct_numbers(self):
        main_road = TestDataFactory.create_branch(name='Main Road')
        mainland = TestDataFactory.create_branch(name='Mainland')
        today = timezone.localdate().strftime('%d%m%y')
        data = {
            'tab': Order.TAB_BILLING, 'payment_method': 'Cash', 'status': 'draft',
            'subtotal': Decimal('0'), 'total_gst': Decimal('0'), 'total_with_gst': Decimal('0'), 'total_items': 0,
        }

        first = services.create_order(main_road, data, [])
        second = services.create_order(mainland, data, [])
        third = services.create_order(main_road, data, [])
        self.assertEqual(first.bill_no, f'MAI{today}01')
        self.assertEqual(second.bill_no, f'MAI{today}02')
        self.assertEqual(third.bill_no, f'MAI{today}03')

    def test_order_ids_are_prefixed(self):
        self.assertTrue(services.generate_order_id().startswith('ORD-'))


class OrderCreateTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch(name='Main Street')
        self.user = TestDataFactory.create_user(role='branch', branch=self.branch)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(name='Veg Puff')
        self.waiter = TestDataFactory.create_employee()

    def _payload(self, **overrides):
        data = {
            'branch': self.branch.id,
            'tab': 'billing',
            'payment_method': 'UPI',
            'status': 'completed',
            'items': [item_payload(self.product)],
            'subtotal': '100.00',
            'total_gst': '5.00',
            'total_with_gst': '105.00',
            'total_items': 1,
            'waiter': self.waiter.id,
        }
        data.update(overrides)
        return data

    def test_create_completed_bill_reduces_stock(self):
        TestDataFactory.create_inventory(self.product, branch=self.branch, in_stock=Decimal('10'))
        response = self.client.post('/api/v1/orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Order saved successfully')
        order = response.data['order']
        self.assertTrue(order['bill_no'].startswith('MAI'))
        self.assertEqual(order['waiter_name'], self.waiter.name)
        record = Inventory.objects.get(product=self.product, branch=self.branch)
        self.assertEqual(record.in_stock, Decimal('8'))
        self.assertTrue(AuditLog.objects.filter(action='order_create', object_reference=order['bill_no']).exists())

    def test_totals_must_add_up(self):
        response = self.client.post('/api/v1/orders/', self._payload(total_with_gst='110.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Subtotal plus GST does not match the total with GST')

    def test_totals_within_a_paisa_are_accepted(self):
        response = self.client.post('/api/v1/orders/', self._payload(total_with_gst='105.01'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_item_totals_must_match_subtotal(self):
        response = self.client.post('/api/v1/orders/', self._payload(subtotal='90.00', total_with_gst='95.00'), format='json')
        self.assertEqual(response.data['error'], 'Item totals do not match the subtotal')

    def test_items_cannot_be_empty(self):
        response = self.client.post('/api/v1/orders/', self._payload(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Items cannot be empty')

    def test_bill_number_clash_is_a_bad_request(self):
        with mock.patch('backoffice.pos.services.create_order', side_effect=IntegrityError('duplicate bill_no')):
            response = self.client.post('/api/v1/orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Bill number already taken, please save the order again')

    def test_non_gst_item(self):
        items = [item_payload(self.product, gst_rate='non-gst', product_gst='0')]
        response = self.client.post('/api/v1/orders/', self._payload(items=items, total_gst='0', total_with_gst='100.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = response.data['order']['items'][0]
        self.assertEqual(item['gst_rate'], 'non-gst')
        self.assertTrue(item['is_non_gst'])

        items = [item_payload(self.product, gst_rate='non-gst', product_gst='5.00')]
        response = self.client.post('/api/v1/orders/', self._payload(items=items), format='json')
        self.assertEqual(response.data['error'], 'Non-GST items must have product_gst set to 0')

    def test_items_keep_submission_order(self):
        other = TestDataFactory.create_product(name='Egg Puff')
        items = [item_payload(other, quantity='1', price='40.00', product_gst='2.00'),
                 item_payload(self.product, quantity='1', price='60.00', product_gst='3.00')]
        response = self.client.post('/api/v1/orders/', self._payload(items=items), format='json')
        self.assertEqual([i['name'] for i in response.data['order']['items']], ['Egg Puff', 'Veg Puff'])

    def test_branch_user_cannot_bill_for_other_branch(self):
        other = TestDataFactory.create_branch()
        response = self.client.post('/api/v1/orders/', self._payload(branch=other.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_create_orders(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))
        response = self.client.post('/api/v1/orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TableOrderTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch()
        self.category = TestDataFactory.create_table_category(self.branch, name='Hall', table_count=3)
        self.table = Table.objects.get(category=self.category, table_number='Hall-1')
        self.product = TestDataFactory.create_product()

    def _data(self, order_status):
        return {
            'tab': Order.TAB_TABLE,
            'payment_method': 'Cash',
            'status': order_status,
            'subtotal': Decimal('50.00'),
            'total_gst': Decimal('0'),
            'total_with_gst': Decimal('50.00'),
            'total_items': 1,
            'table': self.table,
        }

    def _items(self):
        return [dict(product=self.product, name=self.product.name, quantity=Decimal('1'), price=Decimal('50.00'),
                     unit='pcs', gst_rate=Decimal('0'), is_non_gst=False, product_total=Decimal('50.00'),
                     product_gst=Decimal('0'))]

    def test_draft_occupies_and_completed_frees(self):
        order = services.create_order(self.branch, self._data('draft'), self._items())
        self.table.refresh_from_db()
        self.assertEqual(self.table.status, 'Occupied')
        self.assertEqual(self.table.current_order, order)

        with self.assertRaises(DomainError):
            services.create_order(self.branch, self._data('draft'), self._items())

        self.table.status = 'Free'
        self.table.current_order = None
        self.table.save()
        services.create_order(self.branch, self._data('completed'), self._items())
        self.table.refresh_from_db()
        self.assertEqual(self.table.status, 'Free')
        self.assertIsNone(self.table.current_order)

    def test_category_creates_numbered_tables(self):
        numbers = [t.table_number for t in sorted(self.category.tables.all(), key=lambda t: t.sequence)]
        self.assertEqual(numbers, ['Hall-1', 'Hall-2', 'Hall-3'])

    def test_resize_grows_and_shrinks(self):
        services.resize_table_category(self.category, 5)
        self.assertEqual(self.category.tables.count(), 5)
        services.resize_table_category(self.category, 2)
        self.assertEqual(sorted(t.sequence for t in self.category.tables.all()), [1, 2])

    def test_cannot_shrink_over_occupied_table(self):
        Table.objects.filter(table_number='Hall-3').update(status='Occupied')
        with self.assertRaises(DomainError) as ctx:
            services.resize_table_category(self.category, 2)
        self.assertEqual(ctx.exception.message, 'Cannot decrease table count: some tables to be removed are occupied')

    def test_table_category_api(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/table-categories/')
        self.assertEqual(response.data['error'], 'branch is required')

        response = client.post('/api/v1/table-categories/', {'name': 'Hall', 'branch': self.branch.id, 'table_count': 2}, format='json')
        self.assertEqual(response.data['error'], 'Table category with this name already exists for this branch')

        response = client.post('/api/v1/table-categories/', {'name': 'Terrace', 'branch': self.branch.id, 'table_count': 0}, format='json')
        self.assertEqual(response.data['error'], 'Table count must be at least 1')

        response = client.get(f'/api/v1/table-categories/?branch={self.branch.id}')
        self.assertEqual(len(response.data['categories'][0]['tables']), 3)

    def test_table_status_update(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.put(f'/api/v1/tables/{self.table.id}/', {'status': 'Reserved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid status. Must be "Free" or "Occupied"')

        response = client.put(f'/api/v1/tables/{self.table.id}/', {'status': 'Occupied'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.table.refresh_from_db()
        self.assertEqual(self.table.status, 'Occupied')
        self.assertIsNone(self.table.current_order)


class DeliveryWorkflowTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch(name='Lake View')
        self.product = TestDataFactory.create_product(name='Croissant')
        stock.produce(self.product.pk, 20)
        self.order = TestDataFactory.create_order(
            self.branch, items=[(self.product, 6, '30.00', 5)], tab=Order.TAB_STOCK, status='neworder',
        )
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_delivered_requires_completed(self):
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/', {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Order must be completed before marking as delivered')

    def test_received_requires_delivered(self):
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/', {'status': 'received'}, format='json')
        self.assertEqual(response.data['error'], 'Order must be delivered before marking as received')

    def test_delivery_transfers_sending_quantities(self):
        url = f'/api/v1/orders/{self.order.id}/'
        response = self.client.patch(url, {'items': [{'sending_qty': '4', 'confirmed': True}], 'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.patch(url, {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['order']['delivered_at'])

        factory = Inventory.objects.get(product=self.product, branch__isnull=True)
        branch_record = Inventory.objects.get(product=self.product, branch=self.branch)
        self.assertEqual(factory.in_stock, Decimal('16'))
        self.assertEqual(branch_record.in_stock, Decimal('4'))
        self.assertEqual(branch_record.history.first().reason, 'Received from Factory (Stock Order)')
        self.assertEqual(factory.history.first().reason, 'Transferred to Lake View (Stock Order)')

        response = self.client.patch(url, {'status': 'received'}, format='json')
        self.assertIsNotNone(response.data['order']['received_at'])
        self.assertEqual(AuditLog.objects.filter(action='order_status').count(), 3)

    def test_update_needs_items_or_status(self):
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/', {}, format='json')
        self.assertEqual(response.data['error'], 'At least one of items or status must be provided')

    def test_edit_reads_back(self):
        url = f'/api/v1/orders/{self.order.id}/'
        self.client.patch(url, {'items': [{'sending_qty': '5'}]}, format='json')
        item = self.client.get(url).data['items'][0]
        self.assertEqual(Decimal(str(item['sending_qty'])), Decimal('5'))
        self.assertFalse(item['confirmed'])


class OrderListTests(TestCase):

    def setUp(self):
        self.main = TestDataFactory.create_branch()
        self.north = TestDataFactory.create_branch()
        self.waiter = TestDataFactory.create_employee()
        TestDataFactory.create_order(self.main, tab='billing', waiter=self.waiter)
        TestDataFactory.create_order(self.main, tab='stock', status='neworder')
        TestDataFactory.create_order(self.north, tab='liveOrder', status='neworder')
        TestDataFactory.create_order(self.north, tab='billing', created_at=timezone.now() - timedelta(days=3))
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))

    def _ids(self, params):
        response = self.client.get('/api/v1/orders/', params)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return {o['id'] for o in response.data}

    def test_default_tabs_are_factory_requests(self):
        tabs = {o['tab'] for o in self.client.get('/api/v1/orders/').data}
        self.assertEqual(tabs, {'stock', 'liveOrder'})

    def test_filters_return_subsets(self):
        everything = self._ids({'tab': 'stock,liveOrder,tableOrder,billing'})
        self.assertEqual(len(everything), 4)
        for params in ({'branch': self.main.id}, {'waiter': self.waiter.id}, {'status': 'neworder'},
                       {'start_date': timezone.localdate().isoformat()}):
            params['tab'] = 'stock,liveOrder,tableOrder,billing'
            self.assertTrue(self._ids(params) <= everything)
        today = {'tab': 'billing', 'start_date': timezone.localdate().isoformat()}
        self.assertEqual(len(self._ids(today)), 1)

    def test_branch_user_sees_own_branch_only(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='branch', branch=self.north))
        response = self.client.get('/api/v1/orders/', {'tab': 'billing,liveOrder', 'branch': self.main.id})
        self.assertEqual({o['branch'] for o in response.data}, {self.north.id})

    def test_bad_date(self):
        response = self.client.get('/api/v1/orders/', {'start_date': '2026/10/19'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_receipt_renders_html(self):
        product = TestDataFactory.create_product(name='Rusk Pack')
        order = TestDataFactory.create_order(self.main, items=[(product, 2, '25.00', 5)])
        response = self.client.get(f'/api/v1/orders/{order.id}/receipt/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, order.bill_no)
        self.assertContains(response, 'Rusk Pack')


class OverdueSweepTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch()
        now = timezone.now()
        self.late_stock = TestDataFactory.create_order(
            self.branch, tab='stock', status='neworder', delivery_datetime=now - timedelta(minutes=5))
        self.future_stock = TestDataFactory.create_order(
            self.branch, tab='stock', status='neworder', delivery_datetime=now + timedelta(hours=2))
        self.old_live = TestDataFactory.create_order(
            self.branch, tab='liveOrder', status='neworder', created_at=now - timedelta(hours=4))
        self.fresh_live = TestDataFactory.create_order(
            self.branch, tab='liveOrder', status='neworder', created_at=now - timedelta(hours=1))

    def test_marks_only_overdue_orders(self):
        bill_numbers = services.mark_overdue_orders()
        self.assertEqual(set(bill_numbers), {self.late_stock.bill_no, self.old_live.bill_no})
        statuses = dict(Order.objects.values_list('bill_no', 'status'))
        self.assertEqual(statuses[self.late_stock.bill_no], 'pending')
        self.assertEqual(statuses[self.future_stock.bill_no], 'neworder')
        self.assertEqual(statuses[self.fresh_live.bill_no], 'neworder')

    def test_dry_run_command_changes_nothing(self):
        out = StringIO()
        call_command('mark_overdue_orders', '--dry-run', stdout=out)
        self.assertIn('Found 2 overdue orders', out.getvalue())
        self.assertFalse(Order.objects.filter(status='pending').exists())

    def test_command_marks_pending(self):
        out = StringIO()
        call_command('mark_overdue_orders', stdout=out)
        self.assertIn('Marked 2 overdue orders as pending', out.getvalue())
        self.assertEqual(Order.objects.filter(status='pending').count(), 2)


class KotOrderTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def _payload(self, **overrides):
        data = {
            'delivery_date': timezone.localdate().isoformat(),
            'delivery_time': '17:00',
            'delivery_type': 'Door Delivery',
            'customer_name': 'Anita',
            'customer_number': '9876500000',
            'address': '4 Park Lane',
            'email': 'anita@example.com',
            'cake_model': 'Red Velvet',
            'weight': '1.5',
            'flavour': 'Red Velvet',
            'type': 'Eggless',
            'amount': '1500.00',
            'advance': '500.00',
            'branch': self.branch.id,
            'sales_man': 'Suresh',
        }
        data.update(overrides)
        return data

    def test_create_computes_balance_and_form_number(self):
        response = self.client.post('/api/v1/kot-orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(len(data['form_number']), 10)
        self.assertEqual(Decimal(str(data['balance'])), Decimal('1000.00'))

    def test_advance_cannot_exceed_amount(self):
        response = self.client.post('/api/v1/kot-orders/', self._payload(advance='2000.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('advance', response.data)

    def test_detail_and_print(self):
        kot = TestDataFactory.create_kot_order(self.branch)
        response = self.client.get(f'/api/v1/kot-orders/{kot.form_number}/')
        self.assertEqual(response.data['customer_name'], 'Test Customer')
        response = self.client.get(f'/api/v1/kot-orders/{kot.form_number}/print/')
        self.assertContains(response, kot.form_number)
        response = self.client.get('/api/v1/kot-orders/0000000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'KOT order not found')

    def test_balance_recomputed_on_save(self):
        kot = TestDataFactory.create_kot_order(self.branch, amount=Decimal('800'), advance=Decimal('300'))
        self.assertEqual(KotOrder.objects.get(pk=kot.pk).balance, Decimal('500'))

    def test_list_filters(self):
        other_branch = TestDataFactory.create_branch()
        today = TestDataFactory.create_kot_order(self.branch)
        later = TestDataFactory.create_kot_order(self.branch)
        KotOrder.objects.filter(pk=later.pk).update(delivery_date=timezone.localdate() + timedelta(days=2))
        elsewhere = TestDataFactory.create_kot_order(other_branch)

        response = self.client.get('/api/v1/kot-orders/', {'branch': self.branch.id})
        self.assertEqual({k['id'] for k in response.data}, {today.id, later.id})

        response = self.client.get('/api/v1/kot-orders/', {'delivery_date': timezone.localdate().isoformat()})
        self.assertEqual({k['id'] for k in response.data}, {today.id, elsewhere.id})

        response = self.client.get('/api/v1/kot-orders/', {'branch': self.branch.id,
                                                            'delivery_date': timezone.localdate().isoformat()})
        self.assertEqual([k['id'] for k in response.data], [today.id])

    def test_malformed_delivery_date(self):
        response = self.client.get('/api/v1/kot-orders/', {'delivery_date': 'bad'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid date format. Use YYYY-MM-DD')
