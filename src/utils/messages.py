from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired after a successful login so screens can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever an item is reserved into or released from the cart,
    and after checkout empties it. Stock figures shown elsewhere are stale
    after this. Post at App level when sent from outside the cart screen.
    """

    bubble = True


class OrdersChangedMessage(Message):
    """
    Fired when an order is placed, cancelled, or moves to another status.
    Listened to by order history, admin orders and the report.
    """

    bubble = True

    def __init__(self, order_id: int) -> None:
        super().__init__()
        self.order_id = order_id


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
