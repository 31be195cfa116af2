"""Shared constants for evshop."""

from __future__ import annotations

import re

CLIENTS_COLLECTION = "clients"
RECORDS_COLLECTION = "maintenanceRecords"

#: Page sizes offered by the customer table.
PAGE_SIZE_OPTIONS: tuple[int, ...] = (5, 10, 20, 50)
DEFAULT_PAGE_SIZE = 10

#: Number of maintenance records shown inline under each customer.
LATEST_RECORDS_LIMIT = 3

#: Local mobile number: ``09`` followed by eight ASCII digits.
PHONE_PATTERN = re.compile(r"^09[0-9]{8}$")

NAME_REQUIRED_MESSAGE = "請輸入姓名"
PHONE_FORMAT_MESSAGE = "手機號碼格式錯誤，需為 09 開頭的 10 碼數字"
ITEM_REQUIRED_MESSAGE = "請輸入維修項目"

CONFIRM_DELETE_CLIENT_MESSAGE = "確定要刪除此客戶嗎？此客戶的所有維修紀錄也將一併刪除，且無法復原。"
CONFIRM_DELETE_RECORD_MESSAGE = "確定要刪除此維修紀錄嗎？"
DELETE_FAILED_MESSAGE = "刪除失敗，請稍後再試。"
