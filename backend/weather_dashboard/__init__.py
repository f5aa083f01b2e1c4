"""天氣儀表板後端

轉發上游天氣 API，並將預報與歷史統計基準比較。
"""

__version__ = "0.1.0"
