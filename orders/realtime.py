"""
New-order notifications over redis pub/sub.

Checkout publishes one JSON message per new order; the order board listens
through a server-sent events stream.
"""
import json
import logging

import redis
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from brewpos.utils import brewpos_setting

logger = logging.getLogger(__name__)


class OrderFeed:
    def __init__(self, client=None, channel=None):
        self._client = client
        self._channel = channel

    @property
    def channel(self):
        return self._channel or brewpos_setting('ORDER_FEED_CHANNEL')

    @property
    def client(self):
        if self._client is None:
            self._client = redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        return self._client

    @staticmethod
    def payload(order):
        return {
            'id': order.pk,
            'order_number': order.order_number,
            'customer_name': order.customer_name,
            'total_amount': order.total_amount,
            'status': order.status,
            'source': order.source,
            'order_type': order.order_type,
            'created_at': order.created_at,
        }

    def publish_new_order(self, order):
        """Announce a new order; the order itself is already saved, so failures are only logged"""
        try:
            message = json.dumps(self.payload(order), cls=DjangoJSONEncoder)
            self.client.publish(self.channel, message)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Could not publish order {order.order_number} to {self.channel}: {e}")
            return False

    def listen(self):
        """Yield each published message (a JSON string) until the consumer stops iterating"""
        pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(self.channel)
        try:
            for message in pubsub.listen():
                if message["type"] == "message":
                    yield message["data"]
        finally:
            pubsub.unsubscribe(self.channel)
            pubsub.close()


order_feed = OrderFeed()
