"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
import threading

from clipboard import ClipboardService
from config import JsonConfigStore
from models import OperationKind, OperationState, ProviderType, Severity
from networks import network_name, short_address
from provider_selector import AccountLookup, ProviderSelector
from toast import ToastWindow
from transaction_orchestrator import TransactionOrchestrator
from wallet_providers import LocalAccountProvider, NodeWalletProvider

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QActionGroup, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))  # transparent background
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"       # grey
ICON_PENDING = "#3B82F6"    # blue
ICON_COMPLETED = "#22C55E"  # green
ICON_FAILED = "#FF8800"     # orange

STATE_ICONS = {
    OperationState.IDLE.value: ICON_IDLE,
    OperationState.PENDING.value: ICON_PENDING,
    OperationState.COMPLETED.value: ICON_COMPLETED,
    OperationState.FAILED.value: ICON_FAILED,
}

PROVIDER_LABELS = {
    ProviderType.NODE: "Node Wallet (RPC accounts)",
    ProviderType.LOCAL: "Local Key (WALLET_PRIVATE_KEY)",
}

DEFAULT_MESSAGE = "Hello from Wallet Ops!"


class UIBridge(QObject):
    notify_signal = Signal(str, str, int)  # message, severity, duration_ms
    state_signal = Signal(str, str)  # from_state, to_state
    account_signal = Signal(str)  # address, "" if none


class QtNotifier:
    """NotificationSink that hands notifications to the Qt thread."""

    def __init__(self, bridge: UIBridge) -> None:
        self._bridge = bridge

    def notify(self, message: str, severity: Severity, duration_ms: int) -> None:
        self._bridge.notify_signal.emit(message, severity.value, duration_ms)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.clipboard = ClipboardService()
        self.toast = ToastWindow()
        self.ui = UIBridge()
        self.ui.notify_signal.connect(self._on_notify_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.account_signal.connect(self._on_account_ui)

        self.selector = ProviderSelector(
            self.config_store,
            {
                ProviderType.NODE: lambda: NodeWalletProvider(self.config_store.get_rpc_url()),
                ProviderType.LOCAL: lambda: LocalAccountProvider(self.config_store.get_rpc_url()),
            },
        )
        self.orchestrator = TransactionOrchestrator(
            provider=self.selector,
            notifier=QtNotifier(self.ui),
            on_state_change=self._on_state_change,
        )
        self.orchestrator.request.message = DEFAULT_MESSAGE
        self.accounts = AccountLookup(self.selector, self._on_account)

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self._setup_menu()
        self._refresh_tooltip()
        self.tray.show()
        self.accounts.refresh()

    def _setup_menu(self) -> None:
        menu = QMenu()

        tx_menu = menu.addMenu("Transactions")
        for kind in OperationKind:
            action = QAction(kind.title, tx_menu)
            action.setToolTip(kind.description)
            action.triggered.connect(lambda _checked=False, k=kind: self._run_operation(k))
            tx_menu.addAction(action)

        cancel_action = QAction("Cancel Pending", menu)
        cancel_action.triggered.connect(self._cancel_pending)
        menu.addAction(cancel_action)

        copy_action = QAction("Copy Last Result", menu)
        copy_action.triggered.connect(self._copy_last_result)
        menu.addAction(copy_action)

        address_action = QAction("Copy Address", menu)
        address_action.triggered.connect(self._copy_address)
        menu.addAction(address_action)

        menu.addSeparator()
        provider_menu = menu.addMenu("Provider")
        group = QActionGroup(provider_menu)
        group.setExclusive(True)
        for provider_type, label in PROVIDER_LABELS.items():
            action = QAction(label, provider_menu)
            action.setCheckable(True)
            action.setChecked(provider_type == self.selector.provider_type)
            action.triggered.connect(lambda _checked=False, p=provider_type: self._set_provider(p))
            group.addAction(action)
            provider_menu.addAction(action)

        rpc_action = QAction("Set RPC URL", menu)
        rpc_action.triggered.connect(self._set_rpc_url)
        menu.addAction(rpc_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self._menu = menu
        self.tray.setContextMenu(menu)

    # ------------------------------------------------------------------
    # Menu handlers
    # ------------------------------------------------------------------

    def _prompt(self, title: str, label: str, default: str = "") -> str | None:
        value, ok = QInputDialog.getText(None, title, label, text=default)
        if not ok:
            return None
        return value

    def _run_operation(self, kind: OperationKind) -> None:
        request = self.orchestrator.request
        prompts = {
            "token_address": ("Token Contract Address", "0x..."),
            "recipient": ("Recipient Address", "0x..."),
            "amount": ("Amount (ETH)" if kind == OperationKind.ETH_TRANSFER else "Amount (tokens)", "0.01"),
            "message": ("Message", DEFAULT_MESSAGE),
        }
        for field in request.required_fields(kind):
            label, placeholder = prompts[field]
            value = self._prompt(kind.title, label, getattr(request, field) or placeholder)
            if value is None:
                return
            setattr(request, field, value)

        # start() blocks until settled, keep it off the Qt main thread.
        threading.Thread(
            target=self.orchestrator.start,
            args=(kind.value,),
            daemon=True,
        ).start()

    def _cancel_pending(self) -> None:
        if not self.orchestrator.cancel():
            self.toast.show_toast("No pending operation", Severity.WARNING, 2000)

    def _copy_last_result(self) -> None:
        result = self.clipboard.copy_text(self.orchestrator.last_payload)
        if result.success:
            self.toast.show_toast("Copied to clipboard", Severity.SUCCESS, 2000)
        else:
            self.toast.show_toast(f"Copy failed: {result.reason}", Severity.WARNING, 3000)

    def _copy_address(self) -> None:
        address = self.accounts.address
        if not address:
            self.toast.show_toast("No wallet account available", Severity.WARNING, 3000)
            return
        result = self.clipboard.copy_text(address)
        if result.success:
            self.toast.show_toast("Address copied to clipboard", Severity.SUCCESS, 2000)
        else:
            self.toast.show_toast(f"Copy failed: {result.reason}", Severity.WARNING, 3000)

    def _set_provider(self, provider_type: ProviderType) -> None:
        if self.orchestrator.state == OperationState.PENDING:
            self.toast.show_toast("Wait for the pending operation first", Severity.WARNING, 3000)
            return
        self.selector.set_provider_type(provider_type)
        self.accounts.refresh(forget=True)
        self._refresh_tooltip()

    def _set_rpc_url(self) -> None:
        value = self._prompt("RPC URL", "JSON-RPC endpoint", self.config_store.get_rpc_url())
        if not value:
            return
        self.config_store.set_rpc_url(value.strip())
        self.selector.invalidate()
        self.accounts.refresh(forget=True)
        self._refresh_tooltip()
        self.toast.show_toast("RPC URL saved and applied.", Severity.SUCCESS, 2000)

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: OperationState, to_state: OperationState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_account(self, address: str | None) -> None:
        self.ui.account_signal.emit(address or "")

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_notify_ui(self, message: str, severity: str, duration_ms: int) -> None:
        self.toast.show_toast(message, Severity(severity), duration_ms)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        self.tray.setIcon(_create_icon(STATE_ICONS.get(to_state, ICON_IDLE)))
        if to_state == OperationState.PENDING.value:
            self.tray.setToolTip("Wallet Ops — Waiting for wallet...")
        else:
            self._refresh_tooltip()
            self.accounts.refresh()

    def _on_account_ui(self, address: str) -> None:
        self._refresh_tooltip()

    def _refresh_tooltip(self) -> None:
        account = self.accounts.address
        network = network_name(self.config_store.get_chain_id())
        provider = PROVIDER_LABELS[self.selector.provider_type]
        self.tray.setToolTip(f"Wallet Ops — {network} · {short_address(account)}\n{provider}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        return self.app.exec()

    def quit(self) -> None:
        self.orchestrator.cancel()
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
