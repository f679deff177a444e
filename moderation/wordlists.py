# moderation/wordlists.py
# Profanity dictionaries, grouped by category. Matching is whole-word on
# normalised text, so only stems that are words on their own are useful here.

CORE_SWEAR = [
    'хуй', 'хуё', 'хуя', 'хуе', 'хую',
    'хуев', 'хуёв', 'хуём',
    'пидор', 'педик', 'пидарас', 'пидр', 'пидар',
    'пидрила', 'пидрило', 'педераст', 'пидорюга',
    'бля', 'бляд', 'блять', 'блядь', 'блядина',
    'блядский', 'блядство', 'блядун', 'блядунья',
    'ебан', 'ебать', 'ебаш', 'ебал', 'ёб',
    'ёбан', 'ёбаный', 'ебаный', 'ёбну', 'ёбн',
    'ебли', 'ебл', 'ёбли', 'ёбля',
    'пизд', 'пиздё', 'пизда', 'пизде', 'пизду', 'пизды',
]

COMBINED_SWEAR = [
    'охуе', 'охуеть', 'охуен', 'охуенно',
    'охуительн', 'охрен', 'охереть', 'охерит',
    'похуй', 'похую', 'похуизм', 'нахуй',
    'нахуя', 'нахер', 'нихуя',
    'хуесос', 'хуеплет', 'хуеглот', 'хуемразь',
    'хуйло', 'хуйня', 'хуила', 'хуило',
    'ебанут', 'ёбанут', 'ебонуть', 'ёбонуть',
    'пиздец', 'пиздабол', 'пиздобол', 'пиздюк',
    'пиздюли', 'пиздень', 'пиздош', 'пиздюга',
]

MILD_SWEAR = [
    'говн', 'говно', 'гавно', 'дерьмо',
    'залупа', 'залупе', 'залупу',
    'муда', 'муде', 'мудак',
    'мудозвон', 'мудоеб', 'мудила', 'мудень',
    'падло', 'падла', 'падле', 'падлу',
    'сука', 'суке', 'суки', 'сучень',
    'сучонок', 'сучка', 'сучье', 'сучара',
    'шлюха', 'шлюхи', 'шлюхе', 'шлюху',
    'уёбок', 'уебок', 'уёбище', 'уебище', 'ёбтвою',
    'жопа', 'жопе', 'жопу', 'жопы',
    'жополиз', 'жопочник',
]

FOREIGN_SWEAR = [
    'fuck', 'fucking', 'fucker', 'motherfucker',
    'shit', 'bitch', 'asshole', 'dick', 'cock',
    'pussy', 'cunt', 'bastard', 'whore', 'slut',
    'douchebag', 'scumbag', 'jerk', 'retard',
]

INSULT = [
    'идиот', 'идиотка', 'дебил', 'дебилы', 'кретин', 'придурок',
    'тупица', 'урод', 'уроды', 'лох', 'лохи', 'дурак', 'дура',
    'idiot', 'moron', 'stupid',
]

# (category, severity, words), first listed wins when a word appears twice
CATEGORIES = (
    ('CORE_SWEAR', 'high', CORE_SWEAR),
    ('COMBINED_SWEAR', 'high', COMBINED_SWEAR),
    ('MILD_SWEAR', 'medium', MILD_SWEAR),
    ('FOREIGN_SWEAR', 'medium', FOREIGN_SWEAR),
    ('INSULT', 'low', INSULT),
)

# Ordinary vocabulary that must never be reported
SAFE_WORDS = (
    'соединение', 'эвотор', 'облачный', 'сервис', 'прямой', 'основной',
    'личный', 'кабинет', 'управление', 'номенклатура', 'установка',
    'приложение', 'обмен', 'удаленный', 'доступ',
)
