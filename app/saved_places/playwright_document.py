"""Playwright adapter exposing a live Google Maps tab as a ``StructuredDocument``."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from playwright.sync_api import (
    BrowserContext,
    ElementHandle,
    Error as PWError,
    Page,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .logging_utils import _scraper_event
from .utils import log_line


def _is_target_closed_error(exc: Exception) -> bool:
    """Return ``True`` if *exc* indicates the Playwright target is gone."""

    message = str(exc)
    return any(
        marker in message
        for marker in (
            "Target closed",
            "Target crashed",
            "has been closed",
        )
    )


def wait_seconds(page: Optional[Page], seconds: float) -> None:
    """Wait safely for ``seconds`` only if *page* remains open."""

    if page is None:
        return

    if seconds is None or seconds <= 0:
        return

    if not page.is_closed():
        page.wait_for_timeout(int(seconds * 1000))


class PlaywrightElement:
    """Wrap an ``ElementHandle``; detached handles read as empty."""

    def __init__(self, handle: ElementHandle) -> None:
        self.handle = handle

    def query_all(self, selector: str) -> List["PlaywrightElement"]:
        try:
            return [PlaywrightElement(h) for h in self.handle.query_selector_all(selector)]
        except PWError as exc:
            if _is_target_closed_error(exc):
                raise
            return []

    def closest(self, selector: str) -> Optional["PlaywrightElement"]:
        try:
            js_handle = self.handle.evaluate_handle("(el, sel) => el.closest(sel)", selector)
        except PWError as exc:
            if _is_target_closed_error(exc):
                raise
            return None
        element = js_handle.as_element()
        return PlaywrightElement(element) if element is not None else None

    def text(self) -> str:
        try:
            return self.handle.inner_text() or ""
        except PWError:
            return ""

    def attribute(self, name: str) -> Optional[str]:
        try:
            return self.handle.get_attribute(name)
        except PWError:
            return None

    def _measure(self, expression: str) -> int:
        try:
            value = self.handle.evaluate(expression)
        except PWError:
            return 0
        return int(value) if isinstance(value, (int, float)) else 0

    def scroll_height(self) -> int:
        return self._measure("el => el.scrollHeight")

    def client_height(self) -> int:
        return self._measure("el => el.clientHeight")

    def scroll_to_end(self) -> None:
        try:
            self.handle.evaluate("el => el.scrollTo(0, el.scrollHeight)")
        except PWError as exc:
            log_line(f"[SCROLL][WARN] scrollTo failed: {exc}")

    def click(self) -> None:
        # A DOM click avoids Playwright's actionability waits on overlapped cards.
        try:
            self.handle.evaluate("el => el.click()")
        except PWError as exc:
            log_line(f"[COORDS][WARN] click failed: {exc}")


class PlaywrightDocument:
    """``StructuredDocument`` backed by a Playwright ``Page``."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def query_all(self, selector: str) -> List[PlaywrightElement]:
        try:
            return [PlaywrightElement(h) for h in self.page.query_selector_all(selector)]
        except PWError as exc:
            if _is_target_closed_error(exc):
                raise
            log_line(f"[DOC][WARN] Query error for {selector!r}: {exc}")
            return []

    def location(self) -> str:
        return self.page.url

    def go_back(self) -> None:
        # history.back() rather than page.go_back(): Maps navigates in-app and
        # go_back() would wait for a load event that never fires.
        try:
            self.page.evaluate("() => window.history.back()")
        except PWError as exc:
            if _is_target_closed_error(exc):
                raise
            log_line(f"[RECOVERY][WARN] history.back() failed: {exc}")

    def wait(self, seconds: float) -> None:
        wait_seconds(self.page, seconds)

    def content(self) -> str:
        return self.page.content()


def _safe_goto(page: Page, url: str, *, label: str) -> bool:
    """Navigate to ``url`` with bounded timeouts and structured logging."""

    try:
        _scraper_event("nav", step="goto", target=label, url=url)
        page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=config.PLAYWRIGHT_NAV_TIMEOUT_SECONDS * 1000,
        )
        return True
    except PWTimeout as exc:
        log_line(f"[SCRAPER][ERROR][NAV] goto({url!r}) timed out: {exc}")
        _scraper_event("error", phase="nav", step="goto_timeout", target=label, url=url, error=str(exc))
        return False
    except PWError as exc:
        log_line(f"[SCRAPER][ERROR][NAV] goto({url!r}) failed: {exc}")
        _scraper_event("error", phase="nav", step="goto_error", target=label, url=url, error=str(exc))
        return False


def _accept_cookies(page: Page) -> None:
    """Best-effort click-through for the Google consent screen."""
    selectors = [
        "button:has-text('Accept all')",
        "button:has-text('I agree')",
        "button[aria-label*='Accept' i]",
        "form[action*='consent'] button",
        "[role='button']:has-text('Accept')",
    ]
    for sel in selectors:
        try:
            loc = page.locator(sel).first
            if loc.count():
                loc.click(timeout=config.PLAYWRIGHT_CLICK_TIMEOUT_MS)
                wait_seconds(page, 0.4)
                log_line(f"Clicked consent banner via {sel}")
                return
        except Exception:
            continue


def _wait_for_sidebar(page: Page, selectors: tuple[str, ...]) -> bool:
    try:
        page.wait_for_selector(
            ", ".join(selectors),
            timeout=config.PLAYWRIGHT_SELECTOR_TIMEOUT_SECONDS * 1000,
        )
        return True
    except PWTimeout:
        log_line("[NAV][WARN] Saved list sidebar did not render in time; continuing.")
        return False
    except PWError as exc:
        log_line(f"[NAV][WARN] Waiting for sidebar failed: {exc}")
        return False


def _launch_context(pw, *, headless: bool, profile_dir: Path) -> BrowserContext:
    profile_dir.mkdir(parents=True, exist_ok=True)
    return pw.chromium.launch_persistent_context(
        str(profile_dir),
        headless=headless,
        args=[
            "--disable-blink-features=AutomationControlled",
            "--no-sandbox",
            "--disable-dev-shm-usage",
        ],
        user_agent=config.USER_AGENT,
        locale="en-US",
        viewport={"width": 1368, "height": 900},
    )


@contextmanager
def open_saved_list(
    url: str,
    *,
    headless: Optional[bool] = None,
    profile_dir: Optional[Path] = None,
    ready_selectors: tuple[str, ...] = (),
) -> Iterator[PlaywrightDocument]:
    """Open ``url`` in a persistent Chromium profile and yield the live document.

    Saved lists are only visible to a signed-in account, so the profile
    directory is reused across runs; sign in once with ``headless=False``.
    """

    with sync_playwright() as pw:
        context = _launch_context(
            pw,
            headless=config.HEADLESS if headless is None else headless,
            profile_dir=profile_dir or config.BROWSER_PROFILE_DIR,
        )
        try:
            context.add_init_script(
                "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
            )
            page = context.pages[0] if context.pages else context.new_page()
            if not _safe_goto(page, url, label="saved_list"):
                raise RuntimeError(f"Unable to open saved list at {url}")
            _accept_cookies(page)
            if ready_selectors:
                _wait_for_sidebar(page, ready_selectors)
            yield PlaywrightDocument(page)
        finally:
            context.close()


__all__ = [
    "PlaywrightDocument",
    "PlaywrightElement",
    "open_saved_list",
    "wait_seconds",
]
