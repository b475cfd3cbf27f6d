# app/puzzles.py
# Local counting puzzles used by the second-chance round. Each prompt is a row of
# symbols; the answer is the number of hearts in it.

SECOND_CHANCE_PUZZLES = [
    {"question": "🥕 🥕 🥕", "answer": 0, "carrots": 1},
    {"question": "❤️", "answer": 1, "carrots": 1},
    {"question": "🥕 ❤️ 🥕", "answer": 1, "carrots": 1},
    {"question": "❤️ ❤️", "answer": 2, "carrots": 1},
    {"question": "❤️ 🥕 ❤️ 🥕", "answer": 2, "carrots": 1},
    {"question": "❤️ ❤️ ❤️", "answer": 3, "carrots": 1},
    {"question": "🥕 ❤️ ❤️ 🥕 ❤️", "answer": 3, "carrots": 1},
    {"question": "❤️ ❤️ ❤️ ❤️", "answer": 4, "carrots": 2},
    {"question": "❤️ 🥕 ❤️ ❤️ 🥕 ❤️", "answer": 4, "carrots": 2},
    {"question": "❤️ ❤️ ❤️ ❤️ ❤️", "answer": 5, "carrots": 2},
    {"question": "❤️ ❤️ 🥕 ❤️ ❤️ 🥕 ❤️", "answer": 5, "carrots": 2},
    {"question": "❤️ ❤️ ❤️ 🥕 ❤️ ❤️ ❤️", "answer": 6, "carrots": 2},
]
