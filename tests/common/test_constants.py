# tests/common/test_constants.py
"""
Тесты для модуля констант.
"""

from src.common.constants import (
    INIT_DATA_HEADER,
    RATE_LIMIT_KEY_PREFIX,
    NearbyState,
    SessionStatus,
    SharingAction,
    TypeMsg,
)


class TestTypeMsg:
    """Тесты для enum TypeMsg."""

    def test_type_msg_values(self) -> None:
        """Проверяет значения типов сообщений."""
        assert TypeMsg.DEBUG.value == "debug"
        assert TypeMsg.INFO.value == "info"
        assert TypeMsg.WARNING.value == "warning"
        assert TypeMsg.ERROR.value == "error"
        assert TypeMsg.CRITICAL.value == "critical"

    def test_type_msg_is_str_enum(self) -> None:
        """Проверяет, что TypeMsg является строковым enum."""
        assert isinstance(TypeMsg.DEBUG, str)
        assert TypeMsg.INFO == "info"


class TestSessionStatus:

    def test_values_match_database_check(self) -> None:
        """Значения совпадают с CHECK в таблице location_sessions."""
        assert {status.value for status in SessionStatus} == {"active", "expired"}

    def test_from_string(self) -> None:
        assert SessionStatus("expired") is SessionStatus.EXPIRED


class TestSharingAction:

    def test_values(self) -> None:
        assert SharingAction.STARTED == "started"
        assert SharingAction.STOPPED == "stopped"


class TestNearbyState:

    def test_four_states(self) -> None:
        """Клиент различает четыре состояния экрана «кто рядом»."""
        assert len(NearbyState) == 4
        assert NearbyState.NOT_SHARING.value == "not_sharing"
        assert NearbyState.UNAVAILABLE.value == "unavailable"


def test_header_and_key_prefix() -> None:
    assert INIT_DATA_HEADER == "X-Telegram-Init-Data"
    assert RATE_LIMIT_KEY_PREFIX == "location_sharing_notified"
