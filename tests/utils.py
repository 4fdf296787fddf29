"""Fakes shared by the test modules."""

import json

from sitechat.models import ApprovedSection, Conversation, Page, PreviewResponse


class FakeResponse:
    """Just enough of requests.Response for the request layer"""

    def __init__(self, status_code=200, payload=None, body=None):
        self.status_code = status_code
        if body is None:
            body = json.dumps(payload) if payload is not None else ""
        self.text = body
        self.content = body.encode("utf-8")

    def json(self):
        return json.loads(self.text)


class FakeTransport:
    """Replays queued responses or exceptions and records every call"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def queue(self, *outcomes):
        self.outcomes.extend(outcomes)

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        if not self.outcomes:
            raise AssertionError(f"Unexpected request: {method} {url}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class FakeGateway:
    """In-memory stand-in for ProjectStateGateway.

    `fail` maps an operation name to the exception it should raise.
    """

    def __init__(self, user_id="test_user_001", fail=None):
        self.user_id = user_id
        self.fail = fail or {}
        self.calls = []
        self.metadata = {}
        self.styles = {}
        self.approved = {}
        self.saved_messages = None
        self.conversation = Conversation()

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise self.fail[name]

    async def set_sitemap(self, pages):
        self._record("set_sitemap", tuple(pages))
        return [Page(name=p, slug=p.lower(), order=i + 1) for i, p in enumerate(pages)]

    async def merge_metadata(self, entries):
        self._record("merge_metadata", dict(entries))
        self.metadata.update(entries)
        return dict(self.metadata)

    async def merge_styles(self, entries):
        self._record("merge_styles", dict(entries))
        self.styles.update(entries)
        return dict(self.styles)

    async def set_preview(self, section, html):
        self._record("set_preview", section, html)
        return PreviewResponse(
            success=True,
            section=section,
            previewUrl=f"/prospects/{self.user_id}/index.html",
        )

    async def clear_preview(self):
        self._record("clear_preview")

    async def finalize(self, html):
        self._record("finalize", html)

    async def approve_section(self, section, html):
        self._record("approve_section", section, html)
        self.approved[section] = html

    async def get_conversation(self):
        self._record("get_conversation")
        return self.conversation

    async def fetch_approved_sections(self):
        self._record("fetch_approved_sections")
        return {
            name: ApprovedSection(html=html, approvedAt="2025-01-01T00:00:00")
            for name, html in self.approved.items()
        }

    async def save_conversation(self, messages=None, approved_section=None):
        self._record("save_conversation")
        self.saved_messages = list(messages) if messages is not None else None
        return len(messages or [])


class EventRecorder:
    def __init__(self, bus):
        self.events = []
        bus.subscribe_all(self.events.append)

    def kinds(self):
        return [e.kind.value for e in self.events]

    def of(self, kind):
        return [e for e in self.events if e.kind.value == kind]

