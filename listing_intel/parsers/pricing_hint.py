"""
Normalization of localized pricing hints shown on app cards.

The marketplace renders a handful of pricing templates and translates them
per listing locale; they are mapped back to a fixed English vocabulary.
"""
import re

FREE = "Free"
FREE_TO_INSTALL = "Free to install"
FREE_TRIAL_AVAILABLE = "Free trial available"
FREE_PLAN_AVAILABLE = "Free plan available"

_ENGLISH_OR_PRICED = re.compile(r"^(Free|From |\$|£|€)")

# Checked in order: "install" and "trial" are more specific than "plan"
_LOCALIZED_TEMPLATES = [
    (re.compile(r"インストール|安装|설치|installa|instalar|installer|installier", re.I), FREE_TO_INSTALL),
    (re.compile(r"体験|试用|체험|trial|essai|prueba|prova|Testversion|deneme", re.I), FREE_TRIAL_AVAILABLE),
    (re.compile(r"プラン|计划|플랜|plan|forfait|Tarif", re.I), FREE_PLAN_AVAILABLE),
    (re.compile(r"^(無料|免费|무료|Kostenlos|Gratuit|Gratis|Gratuito|Ücretsiz|Бесплатно)$", re.I), FREE),
]


def normalize_pricing_hint(text: str) -> str:
    """
    Map a localized pricing hint to English.

    Hints already in English or carrying a price pass through unchanged,
    as do localized prices such as "¥980/月".
    """
    text = (text or "").strip()
    if not text or _ENGLISH_OR_PRICED.match(text):
        return text

    for pattern, english in _LOCALIZED_TEMPLATES:
        if pattern.search(text):
            return english
    return text
