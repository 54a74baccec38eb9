"""Reference data for normalization.

This module defines the category vocabulary, the source field spellings the
Airtable table has used over time, and the placeholder values written when a
field is missing. Everything here is plain data so that settings can seed
their defaults from it.
"""

# Source-language category labels mapped to canonical tags.
CATEGORY_TRANSLATIONS = {
    "签到": "CheckIn",
    "银行": "Bank",
    "视频": "Video",
    "购物": "Shopping",
    "美食": "Food",
    "生活": "Life",
    # Bank sub-categories
    "每日任务": "DailyTask",
    "支付": "Payment",
    "存款": "Deposit",
}

# Page keys (URL hash fragments) mapped to the tag each page lists.
PAGE_CATEGORIES = {
    "bank": "Bank",
    "checkin": "CheckIn",
    "video": "Video",
    "shopping": "Shopping",
    "food": "Food",
    "life": "Life",
}

# Page keys that list every activity.
HOME_PAGES = frozenset({"", "home"})

# Every spelling a source field has appeared under, in lookup order.
FIELD_ALIASES = {
    "name": ("Name", "name", "NAME", "名称", "活动名称"),
    "description": ("Description", "description", "描述", "活动描述"),
    "icon": ("Icon", "icon", "图标"),
    "link": ("DeepLink", "deepLink", "Deeplink", "deeplink", "Link", "link", "链接"),
    "categories": ("Category", "category", "Categories", "categories", "分类", "活动分类"),
    "source_app": ("SourceApp", "sourceApp", "Source App", "source_app", "来源"),
    "target_app": ("TargetApp", "targetApp", "Target App", "target_app", "目标"),
    "special_note": ("SpecialNote", "specialNote", "Special Note", "special_note", "特别提示"),
    "end_date": ("EndDate", "endDate", "End Date", "end_date", "截止日期"),
    "steps_text": ("StepsText", "stepsText", "Steps", "steps", "步骤"),
}

# Placeholders written when a field is missing.
DEFAULT_NAME = "无标题活动"
DEFAULT_DESCRIPTION = "暂无描述"
DEFAULT_ICON = "❓"
DEFAULT_LINK = "#"
DEFAULT_SOURCE_APP = "其他"
DEFAULT_TARGET_APP = "目标 App"

# Source-app filter value that disables the filter.
ALL_SOURCE_APPS = "all"
