from printshop.application.event_hub import OrderEventHub, OrderEventType
from printshop.infrastructure.websocket_channels import ChannelRegistry, WebSocketChannelPublisher
from printshop.presentation.realtime import channels_for
from printshop.domain.lifecycle import ActorRole
from printshop.presentation.schemas import order_payload

from fakes import make_order


class TestChannelRegistry:
    async def test_delivers_to_subscribed_channels_only(self):
        registry = ChannelRegistry()
        store = registry.subscribe(["store:S1"])
        other = registry.subscribe(["store:S2"])

        await WebSocketChannelPublisher(registry).publish("store:S1", "order:new", {"id": "1"})

        assert store.queue.get_nowait() == {"event": "order:new", "channel": "store:S1", "data": {"id": "1"}}
        assert other.queue.empty()

    async def test_no_subscribers_drops_event(self):
        registry = ChannelRegistry()
        assert registry.deliver("store:S1", {"event": "order:new"}) == 0

    async def test_full_queue_drops_instead_of_blocking(self):
        registry = ChannelRegistry(max_queue_size=1)
        subscription = registry.subscribe(["orders:updated"])

        assert registry.deliver("orders:updated", {"event": "first"}) == 1
        assert registry.deliver("orders:updated", {"event": "second"}) == 0
        assert subscription.queue.get_nowait() == {"event": "first"}

    async def test_unsubscribe_cleans_up(self):
        registry = ChannelRegistry()
        subscription = registry.subscribe(["user:u1", "orders:updated"])
        registry.unsubscribe(subscription)
        assert registry.subscriber_count("user:u1") == 0
        assert registry.subscriber_count("orders:updated") == 0

    async def test_hub_over_registry_reaches_customer_socket(self):
        registry = ChannelRegistry()
        customer = registry.subscribe(channels_for("u1", ActorRole.USER, None))
        hub = OrderEventHub(WebSocketChannelPublisher(registry), serializer=order_payload)

        await hub.publish(OrderEventType.CREATED, make_order(customer_id="u1"))

        first = customer.queue.get_nowait()
        second = customer.queue.get_nowait()
        assert first["event"] == "order:new" and first["channel"] == "user:u1"
        assert second == {"event": "orders:updated", "channel": "orders:updated", "data": None}
        assert customer.queue.empty()


class TestChannelsFor:
    def test_customer(self):
        assert channels_for("u1", ActorRole.USER, "S1") == ["user:u1", "orders:updated"]

    def test_store_admin_joins_store_channel(self):
        assert "store:S1" in channels_for("a1", ActorRole.ADMIN, "S1")

    def test_admin_without_store(self):
        assert channels_for("a1", ActorRole.ADMIN, None) == ["user:a1", "orders:updated"]
