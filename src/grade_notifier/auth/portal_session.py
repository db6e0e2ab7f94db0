"""
Portal session management and authentication.

Drives a Chrome instance through Selenium to log into the student portal
and load pages that need the logged-in session. The portal renders its
pages with scripts and gives no structured login error, so a real browser
is used instead of plain HTTP requests.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional

from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from grade_notifier.config import Settings

logger = logging.getLogger(__name__)

DriverFactory = Callable[[Settings], WebDriver]


class PortalSessionError(Exception):
    """Raised when the browser fails to load or drive a portal page."""
    pass


class AuthenticationFailed(PortalSessionError):
    """Raised when the portal rejects the login."""
    pass


def is_login_rejected(location: str, rejected_locations: Iterable[str]) -> bool:
    """
    Decide whether a post-login location means the login was refused.

    The portal does not report login errors. A refused login either sends
    the browser back to the login page or to a dedicated failure page, so
    landing on either of those is the only signal available. Anything else
    counts as success.

    Args:
        location: URL the browser ended up on after submitting the form
        rejected_locations: Login page and failure page URLs

    Returns:
        bool: True if the login was refused
    """
    return location in set(rejected_locations)


def create_chrome_driver(settings: Settings) -> WebDriver:
    """
    Launch Chrome with a driver resolved by webdriver-manager.

    Args:
        settings: Application settings (headless flag)

    Returns:
        WebDriver: Running Chrome driver
    """
    options = webdriver.ChromeOptions()
    if settings.headless:
        options.add_argument("--headless=new")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-setuid-sandbox")
    # Keep page console output so it can be forwarded to our log
    options.set_capability("goog:loggingPrefs", {"browser": "ALL"})

    return webdriver.Chrome(
        service=Service(ChromeDriverManager().install()),
        options=options,
    )


class PortalSession:
    """
    Manages one authenticated browser session with the portal.

    Handles:
    - Browser launch and guaranteed shutdown
    - Login form filling and submission
    - Login verification by post-navigation URL
    - Loading pages with the session cookies

    Use as a context manager: entering launches the browser, leaving
    always closes it.
    """

    def __init__(
        self,
        settings: Settings,
        driver_factory: Optional[DriverFactory] = None,
    ):
        """
        Initialize portal session.

        Args:
            settings: Application settings
            driver_factory: Builds the WebDriver, defaults to a local Chrome
        """
        self.settings = settings
        self.driver_factory = driver_factory or create_chrome_driver
        self.driver: Optional[WebDriver] = None
        self._authenticated = False

    @property
    def is_open(self) -> bool:
        """Check if a browser is running."""
        return self.driver is not None

    @property
    def is_authenticated(self) -> bool:
        """Check if session is authenticated."""
        return self._authenticated

    def _require_driver(self) -> WebDriver:
        if self.driver is None:
            raise PortalSessionError("Browser is not running. Call open() first.")
        return self.driver

    def open(self) -> None:
        """
        Launch the browser.

        Raises:
            PortalSessionError: If the browser could not be started
        """
        if self.driver is not None:
            return
        try:
            self.driver = self.driver_factory(self.settings)
        except WebDriverException as e:
            raise PortalSessionError(f"Could not start browser: {e.msg or e}") from e
        logger.debug("Browser started")

    def close(self) -> None:
        """Shut the browser down. Safe to call more than once."""
        if self.driver is None:
            return
        try:
            self.driver.quit()
        except WebDriverException as e:
            logger.warning(f"Error while closing browser: {e.msg or e}")
        finally:
            self.driver = None
            self._authenticated = False
            logger.info("Browser closed")

    # Browser primitives

    def navigate(self, url: str) -> None:
        """Load a URL and wait for the page load event."""
        driver = self._require_driver()
        try:
            driver.get(url)
        except WebDriverException as e:
            raise PortalSessionError(f"Could not load {url}: {e.msg or e}") from e

    def type_into(self, selector: str, text: str) -> None:
        """
        Type text into a form field one key at a time.

        Args:
            selector: CSS selector of the field
            text: Text to type
        """
        driver = self._require_driver()
        delay = self.settings.typing_delay_ms / 1000
        try:
            field = driver.find_element(By.CSS_SELECTOR, selector)
            field.clear()
            for char in text:
                field.send_keys(char)
                if delay:
                    time.sleep(delay)
        except WebDriverException as e:
            raise PortalSessionError(
                f"Could not fill field {selector!r}: {e.msg or e}"
            ) from e

    def submit(self, selector: str) -> None:
        """Click a submit control."""
        driver = self._require_driver()
        try:
            driver.find_element(By.CSS_SELECTOR, selector).click()
        except WebDriverException as e:
            raise PortalSessionError(
                f"Could not click {selector!r}: {e.msg or e}"
            ) from e

    def wait_for_navigation_settle(self, previous_document, timeout_ms: int) -> None:
        """
        Wait until the browser has left a document and finished loading the next.

        Args:
            previous_document: Root element of the page that was showing before
            timeout_ms: Upper bound for the whole wait

        Raises:
            PortalSessionError: If the navigation did not complete in time
        """
        driver = self._require_driver()
        wait = WebDriverWait(driver, timeout_ms / 1000)
        try:
            wait.until(EC.staleness_of(previous_document))
            wait.until(
                lambda d: d.execute_script("return document.readyState") == "complete"
            )
        except TimeoutException as e:
            raise PortalSessionError(
                f"Navigation did not finish within {timeout_ms} ms"
            ) from e

    def wait_for_element(self, selector: str, timeout_ms: int) -> bool:
        """
        Wait until an element matching the selector is in the DOM.

        Args:
            selector: CSS selector to wait for
            timeout_ms: Upper bound for the wait

        Returns:
            bool: True if the element appeared, False on timeout
        """
        driver = self._require_driver()
        try:
            WebDriverWait(driver, timeout_ms / 1000).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, selector))
            )
        except TimeoutException:
            logger.warning(f"{selector!r} did not appear within {timeout_ms} ms")
            return False
        return True

    def current_location(self) -> str:
        """URL the browser is currently showing."""
        return self._require_driver().current_url

    def page_source(self) -> BeautifulSoup:
        """Parse the DOM the browser is currently showing."""
        return BeautifulSoup(self._require_driver().page_source, "lxml")

    def console_messages(self) -> List[str]:
        """
        Collect console output the page produced since the last call.

        Returns an empty list when the driver does not expose browser logs.
        """
        driver = self._require_driver()
        try:
            entries = driver.get_log("browser")
        except (WebDriverException, AttributeError, ValueError):
            return []
        return [entry.get("message", "") for entry in entries]

    def _forward_console(self) -> None:
        for message in self.console_messages():
            logger.debug(f"[browser console] {message}")

    # Portal operations

    def authenticate(self, identity: str, secret: str) -> None:
        """
        Log into the portal.

        Args:
            identity: Portal login id
            secret: Portal password

        Raises:
            AuthenticationFailed: If the portal sent us back to a login page
            PortalSessionError: If the form could not be used or the page never settled
        """
        settings = self.settings
        logger.info(f"Logging in to {settings.portal_login_url}")

        self.navigate(settings.portal_login_url)
        self.type_into(settings.id_field_selector, identity)
        self.type_into(settings.password_field_selector, secret)

        driver = self._require_driver()
        try:
            login_page = driver.find_element(By.TAG_NAME, "html")
        except WebDriverException as e:
            raise PortalSessionError(f"Login page did not render: {e.msg or e}") from e

        self.submit(settings.login_button_selector)
        self.wait_for_navigation_settle(login_page, settings.navigation_timeout_ms)
        self._forward_console()

        location = self.current_location()
        if is_login_rejected(
            location,
            (settings.portal_login_url, settings.portal_login_fail_url),
        ):
            raise AuthenticationFailed(
                f"Login rejected for {identity}: landed on {location}"
            )

        self._authenticated = True
        logger.info(f"Login successful for user: {identity}")

    def fetch_page(self, url: str, wait_for: Optional[str] = None) -> BeautifulSoup:
        """
        Load a page with the logged-in session and parse it.

        Scripts may still be filling the page after the load event, so when
        wait_for is given the DOM is read only once that element exists or
        page_timeout_ms has passed. A timeout is not an error here: the
        caller decides what a missing element means.

        Args:
            url: Page to load
            wait_for: CSS selector of an element the caller needs

        Returns:
            BeautifulSoup: Parsed DOM of the rendered page

        Raises:
            PortalSessionError: If not authenticated or the page failed to load
        """
        if not self._authenticated:
            raise PortalSessionError("Not authenticated. Call authenticate() first.")

        logger.info(f"Loading {url}")
        self.navigate(url)
        if wait_for:
            self.wait_for_element(wait_for, self.settings.page_timeout_ms)
        self._forward_console()
        return self.page_source()

    def __enter__(self) -> "PortalSession":
        """Context manager entry - launch the browser."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close the browser."""
        self.close()
