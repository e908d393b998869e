from unittest.mock import Mock, patch

from storefront.notify import AppNotifier


def test_warning_becomes_toast():
    app = Mock()

    AppNotifier(app).warning("Order type", "Please choose delivery or online pickup")

    app.notify.assert_called_once_with(
        "Please choose delivery or online pickup", title="Order type", severity="warning", timeout=3
    )
    app.call_from_thread.assert_not_called()


def test_error_uses_error_severity():
    app = Mock()

    AppNotifier(app).error("Could not create order", "Kitchen closed")

    assert app.notify.call_args.kwargs["severity"] == "error"


@patch("storefront.notify.SuccessModal")
def test_success_runs_callback_after_dialog_closes(success_modal):
    app = Mock()
    acknowledged = Mock()

    AppNotifier(app, on_success=acknowledged).success("Order created!", "Your order ORD-1 was created.")

    success_modal.assert_called_once_with("Order created!", "Your order ORD-1 was created.")
    assert app.push_screen.call_args.args[0] is success_modal.return_value
    acknowledged.assert_not_called()

    app.push_screen.call_args.kwargs["callback"](None)

    acknowledged.assert_called_once_with()
