"""Built-in applications, selector tables and the first-run workspace."""

from __future__ import annotations

from typing import Any

from .apps import Application, AppCatalog, SearchConfig

__all__ = [
    "AI_APPS",
    "WEBSITES",
    "DEFAULT_SEARCH_CONFIG",
    "DEFAULT_NEW_SESSION_SELECTORS",
    "DEFAULT_TABS",
    "DEFAULT_SPLIT_LAYOUT",
    "build_default_catalog",
]

DEFAULT_SEARCH_CONFIG = SearchConfig(
    input_selector="textarea, input[type='text'], div[contenteditable='true']",
    submit_method="enter",
)

# Selector forms understood by the pane view scripts:
#   plain CSS                 first match is clicked
#   :scope-text("label")      element whose visible text contains the label
#   :navigate-to("/path")     navigate the page to the path instead of clicking
DEFAULT_NEW_SESSION_SELECTORS: tuple[str, ...] = (
    ':scope-text("新建对话")',
    ':scope-text("新对话")',
    ':scope-text("New Chat")',
    ':scope-text("新建")',
    'button[aria-label*="新建"]',
    'button[aria-label*="New"]',
)

AI_APPS: tuple[Application, ...] = (
    Application(
        id="deepseek",
        name="DeepSeek",
        url="https://chat.deepseek.com/",
        icon="apps/deepseek.png",
        search_config=SearchConfig(
            input_selector='textarea, textarea[placeholder*="DeepSeek"], input[type="text"]',
        ),
        new_session_selectors=(
            ':scope-text("开启新对话")',
            ':scope-text("新对话")',
            ':scope-text("New Chat")',
        ),
    ),
    Application(
        id="tencent-yuanbao",
        name="Tencent Yuanbao",
        url="https://yuanbao.tencent.com/chat",
        icon="apps/yuanbao.webp",
        bordered=True,
        new_session_selectors=(
            ".icon-yb-ic_newchat_20",
            "div.yb-common-nav__trigger:has(.icon-yb-ic_newchat_20)",
        ),
    ),
    Application(
        id="moonshot",
        name="Kimi",
        url="https://kimi.moonshot.cn/",
        icon="apps/kimi.webp",
        search_config=SearchConfig(input_selector='.chat-input-editor, div[role="textbox"]'),
        new_session_selectors=(
            ".new-chat-btn",
            ':scope-text("新建会话")',
            ':scope-text("新会话")',
            ':scope-text("New Chat")',
        ),
    ),
    Application(
        id="doubao",
        name="Doubao",
        url="https://www.doubao.com/chat/",
        icon="apps/doubao.png",
        search_config=SearchConfig(
            input_selector='textarea.semi-input-textarea, textarea[placeholder*="发消息"]',
        ),
        new_session_selectors=(':scope-text("新对话")', 'div[class*="new-chat-btn"]'),
    ),
    Application(
        id="dashscope",
        name="Tongyi",
        url="https://www.qianwen.com/chat",
        icon="apps/qwen.png",
        search_config=SearchConfig(input_selector='textarea, textarea[placeholder*="通义"]'),
        new_session_selectors=(
            '[data-icon-type="pcicon-addDialogue-line"]',
            'button:has([data-icon-type="pcicon-addDialogue-line"])',
            "button.new-chat-btn",
            ':scope-text("新对话")',
        ),
    ),
    Application(
        id="minimax",
        name="Minimax",
        url="https://chat.minimaxi.com/",
        icon="apps/hailuo.png",
        bordered=True,
        search_config=SearchConfig(input_selector='textarea, textarea[placeholder*="MiniMax"]'),
        new_session_selectors=("div.new-task-text-div", ':scope-text("新建任务")'),
    ),
    Application(
        id="zhipu",
        name="Zhipu",
        url="https://chatglm.cn/main/alltoolsdetail",
        icon="apps/zhipu.png",
        bordered=True,
        new_session_selectors=(':scope-text("新建对话")', ':scope-text("新建")'),
    ),
    Application(
        id="baichuan",
        name="Baichuan",
        url="https://ying.baichuan-ai.com/chat",
        icon="apps/baixiaoying.webp",
        new_session_selectors=("button:first-of-type", ':scope-text("新建对话")'),
    ),
    Application(
        id="stepfun",
        name="Stepfun",
        url="https://stepfun.com",
        icon="apps/stepfun.png",
        bordered=True,
        search_config=SearchConfig(
            input_selector=(
                "textarea.Publisher_textarea__pMX9t:not([disabled]), "
                'textarea[placeholder*="可以问我"]'
            ),
            submit_selector=(
                "button.w-8.h-8.rounded-lg:has(svg.custom-icon-send-outline), "
                "button.w-8.h-8.rounded-lg.bg-content-primary"
            ),
            submit_method="click",
        ),
        new_session_selectors=(':navigate-to("/chats/new")',),
    ),
    Application(
        id="openai",
        name="ChatGPT",
        url="https://chatgpt.com/",
        icon="apps/openai.png",
        bordered=True,
        search_config=SearchConfig(input_selector="div[contenteditable='true']"),
        new_session_selectors=('button[aria-label*="New chat"]', '[data-testid="new-chat-button"]'),
    ),
    Application(
        id="gemini",
        name="Gemini",
        url="https://gemini.google.com/app",
        icon="apps/gemini.png",
        search_config=SearchConfig(
            input_selector='div[contenteditable="true"], div[role="textbox"], textarea',
            submit_selector=(
                'button[aria-label*="Send"], button[aria-label*="发送"], '
                'button[aria-label*="提交"], div[role="button"][aria-label*="Send"]'
            ),
        ),
    ),
    Application(
        id="grok",
        name="Grok",
        url="https://grok.com",
        icon="apps/grok.png",
        bordered=True,
    ),
    Application(
        id="lmarena",
        name="lmarena",
        url="https://lmarena.ai",
        icon="apps/lmarena.png",
        bordered=True,
    ),
)

# Ordinary pages opened next to the AI apps; never targeted by fan-out commands.
WEBSITES: tuple[Application, ...] = (
    Application(id="github", name="GitHub", url="https://github.com/", icon="sites/github.png", no_search=True),
    Application(
        id="stackoverflow",
        name="Stack Overflow",
        url="https://stackoverflow.com/",
        icon="sites/stackoverflow.png",
        no_search=True,
    ),
    Application(
        id="wikipedia",
        name="Wikipedia",
        url="https://www.wikipedia.org/",
        icon="sites/wikipedia.png",
        no_search=True,
    ),
)

DEFAULT_TABS: tuple[dict[str, str], ...] = (
    {"id": "deepseek-1763100371335", "applicationId": "deepseek", "title": "DeepSeek"},
    {"id": "tencent-yuanbao-1763100374334", "applicationId": "tencent-yuanbao", "title": "Tencent Yuanbao"},
    {"id": "moonshot-1763100396085", "applicationId": "moonshot", "title": "Kimi"},
)

DEFAULT_SPLIT_LAYOUT: dict[str, Any] = {
    "id": "root",
    "type": "split",
    "direction": "horizontal",
    "children": [
        {"id": "pane-1", "type": "single", "tabId": "deepseek-1763100371335"},
        {"id": "pane-2", "type": "single", "tabId": "tencent-yuanbao-1763100374334"},
        {"id": "pane-3", "type": "single", "tabId": "moonshot-1763100396085"},
    ],
}


def build_default_catalog() -> AppCatalog:
    return AppCatalog(
        (*AI_APPS, *WEBSITES),
        default_search_config=DEFAULT_SEARCH_CONFIG,
        default_new_session_selectors=DEFAULT_NEW_SESSION_SELECTORS,
    )
