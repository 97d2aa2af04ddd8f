"""
UI string tables and the supported language set.

Only English and Thai are offered. The language also selects the natural
language the model writes its descriptive fields in.
"""

from enum import Enum
from typing import Dict

from soundlytics.utils.errors import ConfigurationError


class Language(str, Enum):
    """Locales selectable in the UI."""

    EN = "en"
    TH = "th"

    @property
    def display_name(self) -> str:
        """English name of the language, used in the model instruction."""
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, code: "str | Language") -> "Language":
        """Resolve a locale code, rejecting anything outside the closed set."""
        if isinstance(code, Language):
            return code
        normalized = str(code).strip().lower()
        for language in cls:
            if language.value == normalized:
                return language
        raise ConfigurationError(
            f"Unsupported language '{code}'. "
            f"Choose one of: {', '.join(lang.value for lang in cls)}",
            config_key="ui.language",
        )


_DISPLAY_NAMES = {
    Language.EN: "English",
    Language.TH: "Thai",
}


TRANSLATIONS: Dict[Language, Dict[str, str]] = {
    Language.EN: {
        "title": "SOUNDLYTICS",
        "subtitle": "Neural Music Intelligence",
        "hero_title_1": "Decode the",
        "hero_title_2": "Musical DNA",
        "hero_desc": "Upload a track, capture a live signal, or describe a sound. "
                     "Soundlytics maps genre, mood and structure in seconds.",
        "import_audio": "Import Audio",
        "drag_browse": "Browse files",
        "live_sensor": "Live Sensor",
        "use_mic": "Use microphone",
        "capturing": "Capturing signal...",
        "stop_capture": "Stop capture",
        "signal_locked": "Signal locked",
        "clear": "Clear",
        "play": "Play",
        "pause": "Pause",
        "descriptor_module": "or describe it",
        "placeholder_text": "Describe a sound, e.g. 'dusty boom-bap drums with a jazzy Rhodes loop'",
        "btn_generate": "Generate Analysis",
        "btn_processing": "Processing...",
        "export": "Export JSON",
        "language": "Language",
        "error_input": "Provide an audio signal or a description first.",
        "error_format": "Invalid format. Soundlytics requires standard audio containers.",
        "error_size": "Signal payload too large. Max limit: 20MB.",
        "error_sensor": "Sensor access denied. Check system microphone permissions.",
        "error_encoding": "The audio signal could not be read. Try another file.",
        "error_engine": "The analysis engine could not process this signal. Please try again.",
        "digital_id": "Digital ID",
        "confidence_rating": "Confidence Rating",
        "genre_mapping": "Genre Mapping",
        "signal_metadata": "Signal Metadata",
        "tempo": "Tempo",
        "harmonic_key": "Harmonic Key",
        "structure": "Time Signature",
        "sonic_atmosphere": "Sonic Atmosphere",
        "layer_profile": "Layer Profile",
        "proximity_network": "Proximity Network",
        "historical_origin": "Historical Origin",
        "footer_rights": "Soundlytics. All rights reserved.",
    },
    Language.TH: {
        "title": "SOUNDLYTICS",
        "subtitle": "ปัญญาประดิษฐ์ด้านดนตรี",
        "hero_title_1": "ถอดรหัส",
        "hero_title_2": "DNA ทางดนตรี",
        "hero_desc": "อัปโหลดเพลง บันทึกเสียงสด หรืออธิบายเสียงที่ต้องการ "
                     "Soundlytics จะวิเคราะห์แนวเพลง อารมณ์ และโครงสร้างภายในไม่กี่วินาที",
        "import_audio": "นำเข้าไฟล์เสียง",
        "drag_browse": "เลือกไฟล์",
        "live_sensor": "บันทึกเสียงสด",
        "use_mic": "ใช้ไมโครโฟน",
        "capturing": "กำลังบันทึกสัญญาณ...",
        "stop_capture": "หยุดบันทึก",
        "signal_locked": "พร้อมวิเคราะห์",
        "clear": "ล้าง",
        "play": "เล่น",
        "pause": "หยุดชั่วคราว",
        "descriptor_module": "หรืออธิบายเสียง",
        "placeholder_text": "อธิบายเสียง เช่น 'กลองบูมแบ็ปพร้อมลูปเปียโนโรดส์สไตล์แจ๊ส'",
        "btn_generate": "เริ่มการวิเคราะห์",
        "btn_processing": "กำลังประมวลผล...",
        "export": "ส่งออก JSON",
        "language": "ภาษา",
        "error_input": "กรุณาเพิ่มไฟล์เสียงหรือคำอธิบายก่อน",
        "error_format": "รูปแบบไฟล์ไม่ถูกต้อง Soundlytics ต้องการไฟล์เสียงมาตรฐาน",
        "error_size": "ขนาดไฟล์ใหญ่เกินไป จำกัดที่ 20MB",
        "error_sensor": "ไม่สามารถเข้าถึงไมโครโฟนได้ กรุณาตรวจสอบการอนุญาต",
        "error_encoding": "ไม่สามารถอ่านสัญญาณเสียงได้ กรุณาลองไฟล์อื่น",
        "error_engine": "ระบบวิเคราะห์ไม่สามารถประมวลผลสัญญาณนี้ได้ กรุณาลองใหม่อีกครั้ง",
        "digital_id": "อัตลักษณ์ดิจิทัล",
        "confidence_rating": "ระดับความมั่นใจ",
        "genre_mapping": "แผนผังแนวเพลง",
        "signal_metadata": "ข้อมูลทางเทคนิค",
        "tempo": "จังหวะ",
        "harmonic_key": "คีย์",
        "structure": "อัตราจังหวะ",
        "sonic_atmosphere": "บรรยากาศของเสียง",
        "layer_profile": "เครื่องดนตรี",
        "proximity_network": "ศิลปินที่ใกล้เคียง",
        "historical_origin": "ที่มาทางประวัติศาสตร์",
        "footer_rights": "Soundlytics สงวนลิขสิทธิ์",
    },
}


def get_strings(language: "str | Language") -> Dict[str, str]:
    """Return the full string table for a language."""
    return TRANSLATIONS[Language.parse(language)]


def translate(language: "str | Language", key: str) -> str:
    """Look up one UI string, falling back to the key itself when missing."""
    return get_strings(language).get(key, key)
