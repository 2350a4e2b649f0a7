"""User-visible strings in English and Traditional Chinese."""

from typing import Dict

LANGUAGES = ("EN", "ZH")
FALLBACK_LANGUAGE = "ZH"

MESSAGES: Dict[str, Dict[str, str]] = {
    "EN": {
        "no_questions": "No questions in this category!",
        "blank_answer": "Please enter or choose an answer first.",
        "already_graded": "This question has already been checked.",
        "session_not_found": "Quiz session not found.",
        "session_active": "A quiz is already in progress. Finish or quit it first.",
        "invalid_action": "That action is not available right now.",
        "question_not_found": "Question not found.",
        "invalid_question": "Invalid question: {detail}",
        "duplicate_question": "A question with this id already exists.",
        "missing_sheet_settings": "Please input API Key and Sheet ID",
        "sheet_permission_denied": "Permission Denied. Ensure the sheet is shared as 'Anyone with the link can view'.",
        "sheet_not_found": "Sheet or Range not found. Check Spreadsheet ID and Range name.",
        "sheet_no_data": "No data found in this range.",
        "sheet_no_valid_rows": "No valid questions found in data rows.",
        "sync_success": "Sync successful! ({count} questions)",
        "sync_error": "Sync failed.",
        "ocr_error": "Could not read questions from this photo. Please try again.",
        "ai_error": "AI generation failed. Please try again.",
        "analysis_error": "AI analysis failed. Please try again.",
        "unsupported_file": "Please upload a photo (JPEG/PNG/WebP) or a PDF.",
        "bank_cleared": "All questions cleared.",
        "records_cleared": "All records cleared.",
        "great_job": "Great job! No weak areas right now.",
    },
    "ZH": {
        "no_questions": "此分類沒有題目！",
        "blank_answer": "請先輸入或選擇答案。",
        "already_graded": "這一題已經批改過了。",
        "session_not_found": "找不到測驗。",
        "session_active": "已有測驗正在進行中，請先完成或離開。",
        "invalid_action": "目前無法執行這個動作。",
        "question_not_found": "找不到題目。",
        "invalid_question": "題目格式錯誤：{detail}",
        "duplicate_question": "已經有相同 ID 的題目。",
        "missing_sheet_settings": "請輸入 API Key 與 Spreadsheet ID",
        "sheet_permission_denied": "存取被拒。請確保試算表已設為『知道連結的任何人都可以檢視』，且 API Key 正確。",
        "sheet_not_found": "找不到試算表或分頁範圍。請檢查 Spreadsheet ID 與範圍名稱（如 Sheet1）。",
        "sheet_no_data": "此範圍內沒有任何資料。",
        "sheet_no_valid_rows": "找到資料但沒有有效的題目內容（請檢查 C 欄與 E 欄）。",
        "sync_success": "同步成功！（{count} 題）",
        "sync_error": "同步失敗。",
        "ocr_error": "無法從照片讀取題目，請再試一次。",
        "ai_error": "AI 出題失敗，請再試一次。",
        "analysis_error": "AI 分析失敗，請再試一次。",
        "unsupported_file": "請上傳照片（JPEG/PNG/WebP）或 PDF。",
        "bank_cleared": "已清空所有題目。",
        "records_cleared": "已清除所有紀錄。",
        "great_job": "做得好！目前沒有需要加強的地方。",
    },
}


def normalize_language(lang: str) -> str:
    lang = (lang or "").strip().upper()
    return lang if lang in LANGUAGES else FALLBACK_LANGUAGE


def t(lang: str, key: str, **kwargs) -> str:
    template = MESSAGES[normalize_language(lang)].get(key) or MESSAGES["EN"][key]
    return template.format(**kwargs) if kwargs else template
