from __future__ import annotations

from scrapy.logformatter import LogFormatter


class ResultLogFormatter(LogFormatter):
    """Scrapy LogFormatter that logs the risk summary instead of the full item.

    Findings can be long; the terminal only gets the score and label.
    """

    def scraped(self, item, response, spider):  # type: ignore[override]
        data = super().scraped(item, response, spider)
        score = item.get("score") if isinstance(item, dict) else getattr(item, "score", None)
        label = item.get("label") if isinstance(item, dict) else getattr(item, "label", None)
        data["msg"] = "Analyzed %(src)s: %(score)s (%(label)s)"
        data["args"] = {"src": response, "score": score, "label": label}
        return data
