"""Localized phrase tables for countdown messages."""
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple


def plural_form(n: int) -> str:
    """CLDR-style category name ("one", "few" or "many") for Slavic plurals."""
    num = abs(n)
    if num % 10 == 1 and num % 100 != 11:
        return "one"
    if 2 <= num % 10 <= 4 and not 10 <= num % 100 < 20:
        return "few"
    return "many"


def slavic_plural(n: int, one: str, few: str, many: str) -> str:
    """Pick the Russian/Ukrainian-style plural word for ``n``."""
    return {"one": one, "few": few, "many": many}[plural_form(n)]


@dataclass(frozen=True)
class Phrasebook:
    """
    Everything locale-specific the countdown generator needs.

    Templates use ``str.format`` fields: ``{days}``, ``{day_text}``,
    ``{hours}`` and ``{hour_text}``.
    """
    locale: str
    plural_rule: Callable[[int, str, str, str], str]
    day_forms: Tuple[str, str, str]
    hour_forms: Tuple[str, str, str]
    messages: Dict[str, List[str]]
    milestones: Dict[int, List[str]]

    def days_word(self, n: int) -> str:
        return self.plural_rule(n, *self.day_forms)

    def hours_word(self, n: int) -> str:
        return self.plural_rule(n, *self.hour_forms)


RUSSIAN = Phrasebook(
    locale="ru-RU",
    plural_rule=slavic_plural,
    day_forms=("день", "дня", "дней"),
    hour_forms=("час", "часа", "часов"),
    messages={
        "PAST": [
            "Отпуск был {days} {day_text} назад… 😢",
            "Уже {days} {day_text} после отпуска. Воспоминания греют!",
            "Прошло {days} {day_text} с отпуска. Когда следующий?",
            "Погружаюсь в фото — {days} {day_text} после рая 📸",
        ],
        "FAR_FUTURE": [
            "🌍 Мечтаю о море… 120+ дней осталось",
            "Ещё далеко, но отпуск ждёт! ⏳",
        ],
        "QUARTER": [
            "⏳ Квартал ожидания — {days} {day_text}",
            "{days} {day_text} до тропиков — держусь!",
        ],
        "TWO_MONTHS": [
            "📆 Два месяца+ — {days} {day_text}",
            "{days} {day_text} — и я в тропиках! 🏝️",
        ],
        "MONTH": [
            "📅 Месяц+ — {days} {day_text}",
            "{days} {day_text} до солнца и моря! ☀️",
        ],
        "TWO_WEEKS": [
            "🌴 Две недели+ — {days} {day_text}",
            "{days} {day_text} — отпуск на подходе! 🚀",
        ],
        "WEEK": [
            "✈️ Неделя+ — {days} {day_text}",
            "{days} {day_text} — и я в раю! 🏖️",
        ],
        "DAYS_LEFT": [
            "🔥 Осталось {days} {day_text}",
            "Ещё {days} {day_text} до приключений! 🌴",
            "{days} {day_text} countdown! ⏰",
        ],
        "TODAY": [
            "✈️ Сегодня — отпуск! Вперёд!",
            "День отпуска настал! 🌞",
        ],
        "HOURS_LEFT": [
            "⏰ Почти там! {hours} {hour_text}",
            "Финальный отсчёт: {hours} {hour_text}! 🛫",
        ],
        "HOURS_TODAY": [
            "⏰ Осталось {hours} {hour_text}! Почти там!",
            "Тик-так: {hours} {hour_text} до вылета! 🛩️",
        ],
    },
    milestones={
        120: ["⏳ 120 дней — держимся! 💼", "120 до солнца — планирую маршрут 🗺️"],
        100: ["💪 100 дней — сотка до моря!", "100 дней до тропиков 🌴"],
        90: ["🎯 90 дней — квартал ожидания!", "Ещё 90 — и волны зовут 🌊"],
        60: ["📆 60 дней — два месяца!", "Минус два месяца — 60 до вылета ✈️"],
        45: ["🧳 45 — начинаю чек-лист вещей", "45 дней — подготовка в разгаре"],
        30: ["📅 Ровно месяц до отпуска! 🌴", "30 дней до рая в Паттайе! 🏖️"],
        20: ["🕰️ 20 дней осталось! Чемоданы готовы? ✈️", "Двадцать дней до солнца и моря! ☀️"],
        15: ["🚀 Полмесяца до отпуска! 🌊", "15 дней — и я в Паттайе! 🌺"],
        10: ["🔥 Осталось 10 дней! Набираю скорость!", "Десять дней до приключений! 🏄‍♂️"],
        7: ["✈️ Неделя до отпуска! Готовимся к релаксу!", "7 дней — и привет, пляжи! 🏝️"],
        5: ["🚀 Осталось 5 дней! Пора паковать чемодан!", "Пять пальцев — пять дней ✋"],
        3: ["🎉 Уже пахнет морем! 3 дня!", "Три дня до свободы! 🌅"],
        2: ["✌️ Два дня — и отпуск! 🛫", "Послезавтра — взлёт! 🔜"],
        1: ["✈️ Завтра — отпуск! Ура!", "Один день до рая! 😎"],
    },
)

DEFAULT_PHRASEBOOK = RUSSIAN
