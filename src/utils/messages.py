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
    Fired when a user logged in or registered, so screens can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever a line is added, changed or removed, and after checkout.
    The cart screen reloads on it; posts from other screens only reach the app.
    """

    bubble = True


class CatalogChangedMessage(Message):
    """
    Fired by the admin product screen after a product is added or deleted,
    so its table reloads. Other screens reload on resume.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created.
    Listened to by the orders screen when posted to it; otherwise it reloads on resume.
    """

    bubble = True


class OrderStatusChangedMessage(Message):
    """
    Fired when an admin moves an order to its next status
    """

    bubble = True

    def __init__(self, order_id: str, status: str) -> None:
        super().__init__()
        self.order_id = order_id
        self.status = status


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
