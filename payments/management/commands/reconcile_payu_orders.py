import time
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from imistore.exceptions import GatewayUnavailableError
from payments.integrations.payu import get_payu_config
from payments.models import Order, OrderStatus, PaymentMethod, PaymentStatus
from payments.services import verify_transaction


class Command(BaseCommand):
    help = "Poll PayU's verify API for pending online/partial orders and update local DB"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=50)
        parser.add_argument("--sleep", type=float, default=0.5)
        parser.add_argument("--older-than-minutes", type=int, default=15)

    def handle(self, *args, **opts):
        config = get_payu_config()
        cutoff = timezone.now() - timedelta(minutes=opts["older_than_minutes"])
        qs = (
            Order.objects.filter(payment_status=PaymentStatus.PENDING)
            .exclude(payment_method=PaymentMethod.COD)
            .exclude(order_status=OrderStatus.CANCELLED)
            .filter(created_at__lt=cutoff)
            .order_by("created_at")[: opts["max"]]
        )
        orders = list(qs)
        if not orders:
            self.stdout.write(self.style.SUCCESS("No pending orders to reconcile."))
            return

        updated = 0
        for o in orders:
            try:
                order, _ = verify_transaction(o.payment_txn_ref, config=config)
            except GatewayUnavailableError as e:
                self.stdout.write(self.style.WARNING(f"{o.payment_txn_ref}: {e}"))
            else:
                if order.payment_status != PaymentStatus.PENDING:
                    updated += 1
                    self.stdout.write(self.style.SUCCESS(f"Updated {o.payment_txn_ref} -> {order.payment_status}"))
                else:
                    self.stdout.write(f"{o.payment_txn_ref}: still pending")
            if opts["sleep"]:
                time.sleep(opts["sleep"])

        self.stdout.write(self.style.SUCCESS(f"Checked {len(orders)}, updated {updated} orders."))
