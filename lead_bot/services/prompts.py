"""Fixed reply texts, button sets and keyword lists used by the dialogue."""

from __future__ import annotations

from ..models import Button

TICKETS_LINK = "https://arenatickets.co.il/ref/2/"
EMERGENCY_PHONE = "0535515522"
GENERAL_REQUEST_LABEL = "בקשה כללית"
NO_NOTES_KEYWORD = "אין"

ORDER_TYPE_BUTTONS = (
    Button("new_order", "הזמנה חדשה"),
    Button("existing_order", "הזמנה קיימת"),
)
REQUEST_TYPE_BUTTONS = (
    Button("tickets", "כרטיסים"),
    Button("package", "חבילה"),
)
URGENCY_BUTTONS = (
    Button("urgent", "דחוף"),
    Button("not_urgent", "לא דחוף"),
)

NEW_ORDER_KEYWORDS = ("הזמנה חדשה", "חדשה", "הזמנה חדש", "new_order")
EXISTING_ORDER_KEYWORDS = ("הזמנה קיימת", "קיימת", "הזמנה קיים", "existing_order")
TICKETS_KEYWORDS = ("כרטיסים", "כרטיס", "tickets")
PACKAGE_KEYWORDS = ("חבילה", "חבילות", "package")
URGENT_MARKER = "דחוף"
URGENT_EXACT = (URGENT_MARKER, "urgent")
NOT_URGENT_EXACT = ("לא דחוף", "not_urgent")
URGENT_KEYWORDS = ("דחוף", "דחוף מאוד", "חירום")
NOT_URGENT_KEYWORDS = ("לא דחוף", "יכול לחכות", "רגיל", "לא")

ASK_ORDER_TYPE = "הזמנה קיימת או הזמנה חדשה?"
REASK_ORDER_TYPE = "תכתוב 'הזמנה קיימת' או 'הזמנה חדשה', או לחץ על אחד הכפתורים"
ASK_REQUEST_TYPE = "חבילה או כרטיסים?"
REASK_REQUEST_TYPE = "תכתוב 'חבילה' או 'כרטיסים', או לחץ על אחד הכפתורים"
ASK_TICKETS_GAME = "עבור איזה משחק וכמה כרטיסים?"
ASK_TICKETS_AMOUNT = "כמה כרטיסים?"
REASK_TICKETS_AMOUNT = "תכתוב מספר כרטיסים (למשל: 2)"
ASK_PACKAGE_DETAILS = (
    "אני צריך את הפרטים הבאים:\n"
    "• שם המשחק/משחקים\n"
    "• מספר אנשים\n"
    "• מספר טלפון\n"
    "• דגשים והעדפות\n"
    "\n"
    "תתחיל עם שם המשחק/משחקים:"
)
ASK_PACKAGE_PEOPLE = "כמה אנשים?"
ASK_PACKAGE_PHONE = "מה מספר הטלפון?"
REASK_PACKAGE_PHONE = "מספר לא תקין, תנסה שוב"
ASK_PACKAGE_NOTES = f"יש דגשים או העדפות? (אם לא, כתוב '{NO_NOTES_KEYWORD}')"
ASK_URGENCY = "דחוף או לא דחוף?"
REASK_URGENCY = "תכתוב 'דחוף' או 'לא דחוף', או לחץ על אחד הכפתורים"
EMERGENCY_CONTACT = f"מספר טלפון חירום: {EMERGENCY_PHONE}"
ASK_GENERAL_REQUEST = "תשאיר כאן את הבקשה ופרטים, נחזור אליך בהקדם"
GENERAL_REQUEST_RECEIVED = "תודה! קיבלנו את הפרטים שלך, נחזור אליך בהקדם 👍"
ANYTHING_ELSE = "צריך משהו נוסף? תכתוב לי 🙂"
RESTARTED = "התחלתי מחדש את התהליך 🙂"


def tickets_confirmation(game: str, amount: int) -> str:
    return (
        f"מצוין! עבור {game}, {amount} כרטיסים.\n\n"
        f"קישור לאתר: {TICKETS_LINK}\n\n"
        "הסבר: תבחר את המשחק שאתה רוצה ולהבהיר שברגע שאחזור אליך תקבל קוד קופון."
    )


def package_summary(games: str, people: str, phone: str, notes: str) -> str:
    lines = [
        "סיכום החבילה:",
        f"• משחק/משחקים: {games}",
        f"• מספר אנשים: {people}",
        f"• טלפון: {phone}",
        f"• דגשים: {notes or NO_NOTES_KEYWORD}",
    ]
    return "\n".join(lines) + "\n\nתודה! נחזור אליך בהקדם 💪"
