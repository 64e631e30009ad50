"""Localized message catalogue.

Messages are looked up by key and formatted with keyword arguments. The
language is always passed explicitly; it selects text only and never changes
parsing.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType


class Language(Enum):
    ENGLISH = 'english'
    CHINESE = 'chinese'

    @classmethod
    def parse(cls, value: str | Language) -> Language:
        """Accept an enum member, its value or a short code (en, zh)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {'en': cls.ENGLISH, 'zh': cls.CHINESE, 'cn': cls.CHINESE}
        if key in aliases:
            return aliases[key]
        return cls(key)


# key -> (english, chinese)
MESSAGES = MappingProxyType({
    # 1H NMR
    'h1.data': (
        'Data not valid! Please copy data straightly from peak analysis programs.',
        '谱图数据格式不正确！请直接从MestReNova中粘贴',
    ),
    'h1.info': (
        'Frequency/solvent not valid! Please copy data straightly from peak analysis programs.',
        '频率或溶剂信息有误！请直接从MestReNova中粘贴',
    ),
    'peak.format': ('Invalid format.', '格式有误'),
    'peak.order': (
        'Chemical shift of multiplet should be written from low field to high field.',
        '多重峰化学位移区间应由低场向高场书写',
    ),
    'peak.unknown_type': ('{peak_type} peak type does not exist.', '{peak_type}峰类型不存在'),
    'peak.needs_interval': (
        'Multiplet peaks should be reported in interval',
        '多重峰化学位移应为区间形式',
    ),
    'peak.multiplet_j': (
        'Do not report coupling constants in multiplet peaks',
        '多重峰不存在耦合常数',
    ),
    'peak.single_shift': (
        '{peak_type} peak should have only one chemical shift',
        '{peak_type}峰化学位移应为单值',
    ),
    'peak.no_j': (
        '{peak_type} peak do not have coupling constants',
        '{peak_type}峰不存在耦合常数',
    ),
    'peak.needs_j': (
        '{peak_type} peak should have coupling constants',
        '{peak_type}峰应有耦合常数',
    ),
    'peak.j_count_one': (
        '{peak_type} peak should only have {count} coupling constant',
        '{peak_type}峰应只有{count}个耦合常数',
    ),
    'peak.j_count_many': (
        '{peak_type} peak should have {count} coupling constants',
        '{peak_type}峰应有{count}个耦合常数',
    ),
    'peak.original_j': ('Original data: J = {values} Hz', '原始数据：J = {values} Hz'),
    'peak.coerced': (
        '{peak_type} peak has been marked as multiplets, please report the spectrum data manually',
        '{peak_type}峰已被标注为多重峰，请从MestReNova中手动输入化学位移数据',
    ),
    # HRMS
    'hrms.data': ('HRMS Data not valid.', '数据有误'),
    'hrms.format': ('Format not valid.', '格式有误'),
    'hrms.decimal': ('Mass value should be rounded to four decimal places', '应保留4位小数'),
    'hrms.calc': ('Data error, calculated value: {mass}', '数据错误，计算值：{mass}'),
    'hrms.found': ('Deviation should be less than {tolerance}', '偏差值应小于{tolerance}'),
})

_COLUMN = {Language.ENGLISH: 0, Language.CHINESE: 1}


def message(key: str, language: Language = Language.ENGLISH, **kwargs) -> str:
    """Return the message ``key`` in ``language``, formatted with ``kwargs``.

    Raises:
        KeyError: If ``key`` is not in the catalogue

    """
    template = MESSAGES[key][_COLUMN[Language.parse(language)]]
    return template.format(**kwargs) if kwargs else template
