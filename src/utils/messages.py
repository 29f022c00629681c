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
    Fired when user logged in, so screens can refresh user info and the cart
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever the cart store was mutated (add, remove, quantity, clear, sync).
    Triggers a refresh of the cart screen and the sidebar badge.

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


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
