"""
Unit tests for chat tools.

Tests the tool implementations the chatbot calls, and the registry that
dispatches model tool calls by name. "Today" is Monday 2026/1/26 in every
test (see the tool_context fixture).
"""

import json

import pytest
from agents import RunContextWrapper

from clinic_agents.tools import (
    TOOL_DEFINITIONS, execute_tool_call,
    cancel_appointment_impl, create_appointment_impl,
    get_available_slots_impl, get_clinic_info_impl, get_date_info_impl,
)
from services.notification_service import NotificationService
from tests.conftest import TEST_HANDLE
from tests.utils import RecordingNotifier, appointment_row


class TestGetDateInfo:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value,expected", [
        ("2026/1/26", "2026/1/26は月曜日です（今日）"),
        ("2026/1/27", "2026/1/27は火曜日です（明日）"),
        ("2026-01-28", "2026/1/28は水曜日です（明後日）"),
        ("2026/2/1", "2026/2/1は日曜日です（6日後）"),
        ("2026/1/20", "2026/1/20は火曜日です（過去の日付）"),
    ])
    async def test_relative_labels(self, tool_wrapper, value, expected):
        assert await get_date_info_impl(tool_wrapper, value) == expected

    @pytest.mark.asyncio
    async def test_invalid_date(self, tool_wrapper):
        result = await get_date_info_impl(tool_wrapper, "来週の火曜")

        assert "日付の形式が正しくありません" in result


class TestGetAvailableSlots:
    """Test availability descriptions."""

    @pytest.mark.asyncio
    async def test_lists_free_and_booked_slots(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, settings={
            "診療開始時間": "9:00", "診療終了時間": "11:00",
            "昼休み開始": "11:00", "昼休み終了": "11:00",
        }, appointments=[appointment_row("2026/1/27", "10:00")])

        result = await get_available_slots_impl(tool_wrapper, "2026/1/27")

        assert result == (
            "【2026/1/27（火）の予約状況】\n"
            "空き枠: 9:00, 9:30, 10:30\n"
            "予約済み: 10:00"
        )

    @pytest.mark.asyncio
    async def test_shows_remaining_capacity(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, settings={
            "診療開始時間": "9:00", "診療終了時間": "10:00",
            "昼休み開始": "10:00", "昼休み終了": "10:00",
            "同時間帯の最大予約数": "2",
        }, appointments=[appointment_row("2026/1/27", "9:00")])

        result = await get_available_slots_impl(tool_wrapper, "2026/1/27")

        assert "空き枠: 9:00, 9:30(残2)" in result
        assert "予約済み: なし" in result

    @pytest.mark.asyncio
    async def test_closed_day(self, tool_wrapper):
        result = await get_available_slots_impl(tool_wrapper, "2026/2/1")

        assert result.startswith("【2026/2/1（日）】休診日のため")

    @pytest.mark.asyncio
    async def test_fully_booked_day(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, settings={
            "診療開始時間": "9:00", "診療終了時間": "10:00",
            "昼休み開始": "10:00", "昼休み終了": "10:00",
        }, appointments=[appointment_row("2026/1/27", "9:00"), appointment_row("2026/1/27", "9:30")])

        result = await get_available_slots_impl(tool_wrapper, "2026/1/27")

        assert "全ての枠が予約済みです" in result

    @pytest.mark.asyncio
    async def test_past_date(self, tool_wrapper):
        result = await get_available_slots_impl(tool_wrapper, "2026/1/25")

        assert "過去の日付" in result

    @pytest.mark.asyncio
    async def test_beyond_booking_window(self, tool_wrapper):
        result = await get_available_slots_impl(tool_wrapper, "2026/3/10")

        assert "予約可能期間外" in result
        assert "2026/2/25（水）" in result

    @pytest.mark.asyncio
    async def test_store_failure(self, tool_wrapper, sheet_store):
        sheet_store.fail_reads_for.add("予約表")

        result = await get_available_slots_impl(tool_wrapper, "2026/1/27")

        assert "予約状況を確認できませんでした" in result


class TestCreateAppointmentTool:
    """Test chat booking."""

    @pytest.mark.asyncio
    async def test_books_and_sends_confirmation(self, tool_wrapper, sheet_store, notifier):
        result = await create_appointment_impl(
            tool_wrapper,
            date="2026/01/27",
            time="09:30",
            patient_name="山田太郎",
            patient_phone="090-1234-5678",
            patient_email="Taro@Example.com",
            symptom="頭痛",
        )

        assert result == "予約が完了しました。日時: 2026/1/27 9:30、患者名: 山田太郎"
        row = sheet_store.appointment_rows(TEST_HANDLE)[0]
        assert row[:5] == ["2026/1/27", "9:30", "山田太郎", "09012345678", "taro@example.com"]
        assert row[8:] == ["確定", "ChatBot"]
        assert len(notifier.confirmations) == 1
        assert notifier.confirmations[0].clinic_name == "テストクリニック"

    @pytest.mark.asyncio
    async def test_validation_error_is_returned(self, tool_wrapper, sheet_store):
        result = await create_appointment_impl(
            tool_wrapper, date="2026/1/27", time="9:30", patient_name="山田", patient_phone="123",
        )

        assert "電話番号" in result
        assert sheet_store.append_calls == []

    @pytest.mark.asyncio
    async def test_duplicate_phone_same_day(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[appointment_row("2026/1/27", "10:00", phone="09012345678")])

        result = await create_appointment_impl(
            tool_wrapper, date="2026/1/27", time="15:00", patient_name="山田", patient_phone="090-1234-5678",
        )

        assert "既に10:00のご予約があります" in result
        assert len(sheet_store.appointment_rows(TEST_HANDLE)) == 1

    @pytest.mark.asyncio
    async def test_asks_for_doctor_when_selection_enabled(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, settings={"担当医選択を使用": "はい", "担当医リスト": "山田,佐藤"})

        result = await create_appointment_impl(
            tool_wrapper, date="2026/1/27", time="9:30", patient_name="鈴木", patient_phone="09011112222",
        )

        assert "担当医の確認が必要です" in result
        assert "山田、佐藤" in result

    @pytest.mark.asyncio
    async def test_doctor_is_recorded(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, settings={"担当医選択を使用": "はい", "担当医リスト": "山田,佐藤"})

        result = await create_appointment_impl(
            tool_wrapper, date="2026/1/27", time="9:30", patient_name="鈴木",
            patient_phone="09011112222", doctor="佐藤",
        )

        assert result.endswith("、担当医: 佐藤")
        assert sheet_store.appointment_rows(TEST_HANDLE)[0][6] == "佐藤"

    @pytest.mark.asyncio
    async def test_asks_for_card_number_then_accepts_none(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, settings={"診察券番号を使用": "はい"})
        args = dict(date="2026/1/27", time="9:30", patient_name="鈴木", patient_phone="09011112222")

        first = await create_appointment_impl(tool_wrapper, **args)
        second = await create_appointment_impl(tool_wrapper, patient_card_number="なし", **args)

        assert "診察券番号の確認が必要です" in first
        assert second.startswith("予約が完了しました")
        assert sheet_store.appointment_rows(TEST_HANDLE)[0][5] == ""

    @pytest.mark.asyncio
    async def test_slot_already_booked(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[appointment_row("2026/1/27", "9:30", phone="08099998888")])

        result = await create_appointment_impl(
            tool_wrapper, date="2026/1/27", time="9:30", patient_name="鈴木", patient_phone="09011112222",
        )

        assert result == "予約に失敗しました: この枠は既に予約されています"

    @pytest.mark.asyncio
    async def test_formula_input_is_neutralized(self, tool_wrapper, sheet_store):
        await create_appointment_impl(
            tool_wrapper, date="2026/1/27", time="9:30", patient_name="=HYPERLINK(\"x\")",
            patient_phone="09011112222",
        )

        assert sheet_store.appointment_rows(TEST_HANDLE)[0][2].startswith("'=")

    @pytest.mark.asyncio
    async def test_reports_failed_confirmation(self, tool_context, sheet_store):
        tool_context.notifications = NotificationService(RecordingNotifier(raise_error=True))

        result = await create_appointment_impl(
            RunContextWrapper(context=tool_context),
            date="2026/1/27", time="9:30", patient_name="鈴木",
            patient_phone="09011112222", patient_email="suzuki@example.com",
        )

        assert result.endswith("（確認メールの送信に失敗しました）")
        assert len(sheet_store.appointment_rows(TEST_HANDLE)) == 1

    @pytest.mark.asyncio
    async def test_without_notifier_no_failure_note(self, tool_context, sheet_store):
        tool_context.notifications = NotificationService()

        result = await create_appointment_impl(
            RunContextWrapper(context=tool_context),
            date="2026/1/27", time="9:30", patient_name="鈴木",
            patient_phone="09011112222", patient_email="suzuki@example.com",
        )

        assert result == "予約が完了しました。日時: 2026/1/27 9:30、患者名: 鈴木"


class TestCancelAppointmentTool:
    """Test phone-verified cancellation."""

    @pytest.mark.asyncio
    async def test_cancels_with_matching_phone(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[appointment_row("2026/1/27", "10:00", phone="09012345678")])

        result = await cancel_appointment_impl(tool_wrapper, date="2026/01/27", time="10:00", patient_phone="090-1234-5678")

        assert result == "2026/1/27 10:00のご予約をキャンセルしました。またのご利用をお待ちしております。"
        assert sheet_store.appointment_rows(TEST_HANDLE)[0][8] == "キャンセル"

    @pytest.mark.asyncio
    async def test_wrong_phone_does_not_cancel(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[appointment_row("2026/1/27", "10:00", phone="09012345678")])

        result = await cancel_appointment_impl(tool_wrapper, date="2026/1/27", time="10:00", patient_phone="08000000000")

        assert "ご予約が見つかりません" in result
        assert sheet_store.update_calls == []

    @pytest.mark.asyncio
    async def test_padded_cell_is_not_reported_as_owned(self, tool_wrapper, sheet_store):
        sheet_store.seed(TEST_HANDLE, appointments=[appointment_row("2026/1/27", " 10:00", phone="09012345678")])

        result = await cancel_appointment_impl(tool_wrapper, date="2026/1/27", time="10:00", patient_phone="09012345678")

        assert result == "2026/1/27 10:00のご予約が見つかりません。日時と電話番号をご確認ください。"
        assert sheet_store.update_calls == []

    @pytest.mark.asyncio
    async def test_invalid_phone(self, tool_wrapper):
        result = await cancel_appointment_impl(tool_wrapper, date="2026/1/27", time="10:00", patient_phone="abc")

        assert result.startswith("ご予約時にお伝えいただいた電話番号を再度ご確認ください。")


class TestClinicInfoTool:
    @pytest.mark.asyncio
    async def test_describes_clinic(self, tool_wrapper):
        result = await get_clinic_info_impl(tool_wrapper)

        assert "医院名: テストクリニック" in result
        assert "昼休み: 12:00〜14:00" in result
        assert "休診: 日、土の午前、水の午後" in result


class TestToolRegistry:
    """Test tool definitions and dispatch."""

    def test_tool_definitions(self):
        names = [definition["function"]["name"] for definition in TOOL_DEFINITIONS]

        assert names == [
            "get_date_info", "get_available_slots", "create_appointment",
            "cancel_appointment", "get_clinic_info",
        ]
        for definition in TOOL_DEFINITIONS:
            assert definition["type"] == "function"
            assert definition["function"]["description"]
            assert definition["function"]["parameters"]["type"] == "object"

    def test_wrapper_argument_is_not_exposed(self):
        create = next(d for d in TOOL_DEFINITIONS if d["function"]["name"] == "create_appointment")
        properties = create["function"]["parameters"]["properties"]

        assert "wrapper" not in properties
        assert {"date", "time", "patient_name", "patient_phone"} <= set(properties)

    @pytest.mark.asyncio
    async def test_execute_json_arguments(self, tool_context):
        result = await execute_tool_call(tool_context, "get_date_info", json.dumps({"date": "2026/1/27"}))

        assert result == "2026/1/27は火曜日です（明日）"

    @pytest.mark.asyncio
    async def test_execute_drops_null_optionals(self, tool_context, sheet_store):
        result = await execute_tool_call(tool_context, "create_appointment", {
            "date": "2026/1/27", "time": "9:30", "patient_name": "鈴木",
            "patient_phone": "09011112222", "patient_email": None, "doctor": None,
        })

        assert result.startswith("予約が完了しました")

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tool_context):
        assert await execute_tool_call(tool_context, "delete_everything", "{}") == "Unknown tool: delete_everything"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", ["{not json", "[1, 2]", json.dumps({"unexpected": 1})])
    async def test_invalid_arguments(self, tool_context, arguments):
        result = await execute_tool_call(tool_context, "get_date_info", arguments)

        assert result == "Invalid arguments for tool: get_date_info"
