"""ESG Report Crawler - focused crawler for sustainability/ESG report candidates."""

__version__ = "0.1.0"

from esg_crawler.config import Settings
from esg_crawler.crawler import crawl, crawl_async
from esg_crawler.models import CrawlResult, ExtractedMetadata, OutputRecord

__all__ = [
    "CrawlResult",
    "ExtractedMetadata",
    "OutputRecord",
    "Settings",
    "crawl",
    "crawl_async",
]
