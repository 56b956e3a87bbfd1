"""Tag resolution and association sync."""

from __future__ import annotations

from unittest import mock

from django.db import IntegrityError

from core.exceptions import ValidationFailed
from news.models import NewsTag, Tag
from news.services import TagService
from tests.utils import RedisPatchedTestCase, create_account, create_article, create_category


class TagServiceTests(RedisPatchedTestCase):
    @classmethod
    def setUpTestData(cls):
        cls.staff = create_account("staff@example.com")
        cls.article = create_article(cls.staff, create_category("Tech"))

    def test_get_or_create_is_case_and_trim_insensitive(self):
        first = TagService.get_or_create("Sports")
        second = TagService.get_or_create("sports ")

        self.assertEqual(first.id, second.id)
        self.assertEqual(second.name, "Sports")
        self.assertEqual(Tag.objects.count(), 1)

    def test_get_or_create_rejects_blank(self):
        with self.assertRaises(ValidationFailed):
            TagService.get_or_create("   ")

    def test_concurrent_insert_is_refetched(self):
        existing = Tag.objects.create(name="Race")
        lookups = iter([None, existing])

        class _Query:
            @staticmethod
            def first():
                return next(lookups)

        with mock.patch.object(Tag.objects, "filter", return_value=_Query()), mock.patch.object(
            Tag.objects, "create", side_effect=IntegrityError("unique_tag_name_ci")
        ):
            tag = TagService.get_or_create("race")

        self.assertEqual(tag.id, existing.id)

    def test_resolve_all_dedupes_in_first_seen_order(self):
        ids = TagService.resolve_all(["Python", "django", "PYTHON", " Django ", "AI"])
        names = list(Tag.objects.filter(id__in=ids).values_list("id", "name"))

        self.assertEqual(len(ids), 3)
        self.assertEqual([dict(names)[i] for i in ids], ["Python", "django", "AI"])

    def test_sync_replaces_associations(self):
        first = TagService.resolve_all(["a", "b"])
        TagService.sync_for_article(self.article.id, first)
        second = TagService.resolve_all(["b", "c"])
        TagService.sync_for_article(self.article.id, second + second)

        self.assertEqual(
            [t.name for t in TagService.list_for_article(self.article.id)], ["b", "c"]
        )
        self.assertEqual(NewsTag.objects.filter(article=self.article).count(), 2)

    def test_sync_with_empty_clears(self):
        TagService.sync_for_article(self.article.id, TagService.resolve_all(["x"]))
        TagService.sync_for_article(self.article.id, [])
        self.assertEqual(TagService.list_for_article(self.article.id), [])

    def test_list_and_search(self):
        TagService.resolve_all(["Python", "Pyramids", "Art"])

        self.assertEqual([t.name for t in TagService.list_all()], ["Art", "Pyramids", "Python"])
        self.assertEqual([t.name for t in TagService.search_by_name("py")], ["Pyramids", "Python"])
        self.assertEqual(TagService.search_by_name("  "), [])


class TagEndpointTests(RedisPatchedTestCase):
    @classmethod
    def setUpTestData(cls):
        TagService.resolve_all(["Python", "Art"])

    def test_anonymous_list_and_search(self):
        listing = self.api_client.get("/tags/")
        self.assertEqual(listing.status_code, 200)
        self.assertEqual([t["name"] for t in listing.json()["data"]], ["Art", "Python"])

        search = self.api_client.get("/tags/search/", {"keyword": "PY"})
        self.assertEqual([t["name"] for t in search.json()["data"]], ["Python"])

        empty = self.api_client.get("/tags/search/")
        self.assertEqual(empty.json()["data"], [])
