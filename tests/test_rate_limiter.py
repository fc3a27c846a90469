"""Tests for the rate limiter module."""

import asyncio
import time
import unittest
from unittest.mock import AsyncMock, patch

from reddit_quotes.collector.rate_limiter import RateLimiter


class TestRateLimiter(unittest.TestCase):
    """Test cases for the RateLimiter class."""

    @patch("asyncio.sleep", new_callable=AsyncMock)
    def test_pre_request_spaces_requests(self, mock_sleep):
        limiter = RateLimiter(min_interval_sec=0.5)
        limiter.last_request_time = time.time()

        asyncio.run(limiter.pre_request())

        mock_sleep.assert_awaited_once()
        self.assertGreater(mock_sleep.call_args.args[0], 0)
        self.assertLessEqual(mock_sleep.call_args.args[0], 0.5)

    @patch("asyncio.sleep", new_callable=AsyncMock)
    def test_pre_request_no_wait_when_idle(self, mock_sleep):
        limiter = RateLimiter(min_interval_sec=0.5)

        asyncio.run(limiter.pre_request())

        mock_sleep.assert_not_called()
        self.assertGreater(limiter.last_request_time, 0)

    @patch("asyncio.sleep", new_callable=AsyncMock)
    def test_handle_429_with_retry_after(self, mock_sleep):
        limiter = RateLimiter(sleep_buffer_sec=2.0)

        asyncio.run(limiter.handle_429("10"))

        mock_sleep.assert_awaited_once_with(12.0)

    @patch("asyncio.sleep", new_callable=AsyncMock)
    def test_handle_429_default(self, mock_sleep):
        limiter = RateLimiter(sleep_buffer_sec=2.0)

        asyncio.run(limiter.handle_429("not-a-number"))
        asyncio.run(limiter.handle_429(None))

        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [62.0, 62.0])
