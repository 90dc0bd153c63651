"""MarketStore: one object per unit of work wiring every marketplace service together.

Routers talk to the store only; the services behind it can also be used on
their own (tests do).
"""
from typing import Optional
from sqlalchemy.orm import Session
from palma.application.broker_service import BrokerService
from palma.application.checkout_service import CheckoutService, PaymentProcessor
from palma.application.notifications import EmailNotifier
from palma.application.order_service import OrderService
from palma.application.product_service import ProductService
from palma.application.review_service import ReviewService
from palma.application.user_service import UserService
from palma.core_settings import Settings, get_settings
from palma.infrastructure.gateway import ShipmentGateway
from palma.infrastructure.remote_catalog import RemoteCatalog
from palma.infrastructure.repositories import Repositories

class MarketStore:
    def __init__(self, repos: Repositories, gateway: ShipmentGateway,
                 remote: Optional[RemoteCatalog] = None,
                 notifier: Optional[EmailNotifier] = None,
                 payments: Optional[PaymentProcessor] = None,
                 settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.repos = repos
        self.gateway = gateway
        self.notifier = notifier or EmailNotifier()

        self.users = UserService(repos)
        self.products = ProductService(repos, remote)
        self.orders = OrderService(repos, gateway, self.products, self.notifier)
        self.brokers = BrokerService(repos, settings.COMMISSION_RATE)
        self.reviews = ReviewService(repos)
        self.checkout_service = CheckoutService(self.orders, self.brokers, payments, self.notifier)

        # auth and users
        self.register = self.users.register
        self.login = self.users.login
        self.get_user_by_id = self.users.get_user_by_id
        self.get_users = self.users.list_users
        self.get_all_approved_merchants = self.users.list_approved_merchants
        self.get_merchant_name = self.users.get_merchant_name
        self.get_merchant_profile = self.users.get_merchant_profile
        self.update_user_profile = self.users.update_profile
        self.update_merchant_profile = self.users.update_merchant_profile
        self.set_user_status = self.users.set_status

        # products
        self.get_products = self.products.get_all
        self.get_product = self.products.fetch_by_id
        self.fetch_merchant_products = self.products.get_by_merchant_id
        self.add_product = self.products.add
        self.update_product = self.products.update
        self.delete_product = self.products.delete
        self.get_filtered_products = self.products.filter
        self.get_all_unique_categories = self.products.get_categories
        self.get_product_rating = self.products.get_rating

        # orders and shipments
        self.get_orders = self.orders.list_orders
        self.get_order = self.orders.get
        self.get_order_items = self.orders.list_items
        self.place_order = self.orders.place_order
        self.update_order_shipment = self.orders.update_shipment_info
        self.update_local_order_status = self.orders.update_status
        self.update_order_status = self.orders.update_order_status
        self.automate_shipment_creation = self.orders.automate_shipment_creation
        self.sync_shipment_statuses = self.orders.sync_shipment_statuses
        self.cancel_order = self.orders.cancel_order
        self.checkout = self.checkout_service.checkout

        # reviews
        self.get_reviews_for_product = self.reviews.get_reviews_for_product
        self.add_review = self.reviews.add_review

        # brokers and finance
        self.get_shared_products = self.brokers.get_shared_products
        self.upsert_shared_product = self.brokers.upsert_shared_product
        self.remove_shared_product = self.brokers.remove_shared_product
        self.toggle_shared_product_featured = self.brokers.toggle_featured
        self.increment_clicks = self.brokers.increment_clicks
        self.get_commissions = self.brokers.get_commissions
        self.mark_commission_paid = self.brokers.mark_commission_paid
        self.get_withdrawals = self.brokers.list_withdrawals
        self.request_withdrawal = self.brokers.request_withdrawal
        self.update_withdrawal_status = self.brokers.update_withdrawal_status

    @classmethod
    def from_session(cls, db: Session, gateway: ShipmentGateway,
                     remote: Optional[RemoteCatalog] = None, **kwargs) -> "MarketStore":
        return cls(Repositories.from_session(db), gateway, remote, **kwargs)
