"""Toast window for operation notifications."""

from __future__ import annotations

from models import Severity

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore


_BASE_STYLE = "font-size: 16px; padding: 14px; border-radius: 12px;"

TOAST_STYLES = {
    Severity.SUCCESS: ("✅", "color: white; background: rgba(22,128,61,220);"),
    Severity.WARNING: ("⚠️", "color: #1F1F1F; background: rgba(245,180,40,230);"),
    Severity.ERROR: ("❌", "color: white; background: rgba(190,40,40,225);"),
}


def toast_text(message: str, severity: Severity) -> str:
    icon, _ = TOAST_STYLES[severity]
    return f"{icon} {message}"


class ToastWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(420)

        self._label = QLabel("")
        self._label.setWordWrap(True)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _bottom_right(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + geom.width() - self.width() - 24
        y = geom.y() + geom.height() - self.height() - 24
        self.move(x, y)

    def show_toast(self, message: str, severity: Severity, duration_ms: int = 3000) -> None:
        """Show a notification styled by severity and hide it after duration_ms."""
        self._cancel_hide_timer()
        _, style = TOAST_STYLES[severity]
        self._label.setStyleSheet(style + _BASE_STYLE)
        self._label.setText(toast_text(message, severity))
        self._bottom_right()
        self.show()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(duration_ms)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
