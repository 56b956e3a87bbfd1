"""Seed demo accounts, a category tree, tags and news articles."""

from django.core.management.base import BaseCommand
from django.db import transaction

from access_control.roles import Role
from accounts.managers import AccountManager
from accounts.models import Account
from news.models import Category, NewsArticle
from news.services import TagService

DEMO_ACCOUNTS = [
    ("Alice Staff", "alice.staff@news.local", Role.STAFF, "staffpass"),
    ("Bob Staff", "bob.staff@news.local", Role.STAFF, "staffpass"),
    ("Linh Lecturer", "linh.lecturer@news.local", Role.LECTURER, "lecturerpass"),
]

# name -> (description, parent name)
DEMO_CATEGORIES = {
    "Technology": ("Software, hardware and the people who build them", None),
    "Artificial Intelligence": ("Machine learning and AI research", "Technology"),
    "Programming": ("Languages, tools and practices", "Technology"),
    "Campus Life": ("Events and clubs around campus", None),
    "Academic": ("Courses, exams and scholarships", None),
    "Archive": ("Retired topics", None),
}

DEMO_ARTICLES = [
    (
        "alice.staff@news.local",
        "Artificial Intelligence",
        "AI lab opens to undergraduate researchers",
        "The lab will accept ten students per semester.",
        ["AI", "Research", "Students"],
        True,
    ),
    (
        "alice.staff@news.local",
        "Programming",
        "Python workshop this Friday",
        "Bring a laptop; we will cover packaging and testing.",
        ["Python", "Workshop"],
        True,
    ),
    (
        "bob.staff@news.local",
        "Campus Life",
        "Spring festival schedule announced",
        "Music, food stalls and a club fair across three days.",
        ["Events", "Students"],
        True,
    ),
    (
        "bob.staff@news.local",
        "Academic",
        "Draft: exam timetable changes",
        "Pending approval from the academic office.",
        ["Exams"],
        False,
    ),
]


class Command(BaseCommand):
    """Management command to seed demo news data."""

    help = (
        "Seed demo staff/lecturer accounts, a category tree, tags and news articles. "
        "Use --reset to clear previously seeded data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Clear the demo accounts, their articles and the demo categories before seeding.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        with transaction.atomic():
            if options.get("reset"):
                self._reset_seeded_data()

            self.stdout.write("Seeding news data...")
            accounts = self._create_accounts()
            categories = self._create_categories()
            self._create_articles(accounts, categories)
        self.stdout.write(self.style.SUCCESS("News seed completed."))

    def _reset_seeded_data(self) -> None:
        """Remove demo articles, accounts and categories (children before parents)."""
        self.stdout.write("Resetting previously seeded news data...")

        demo_emails = [email for _, email, _, _ in DEMO_ACCOUNTS]
        NewsArticle.objects.filter(created_by__email__in=demo_emails).delete()
        Account.objects.filter(email__in=demo_emails).delete()

        child_names = [name for name, (_, parent) in DEMO_CATEGORIES.items() if parent]
        root_names = [name for name, (_, parent) in DEMO_CATEGORIES.items() if not parent]
        Category.objects.filter(name__in=child_names, articles__isnull=True).delete()
        Category.objects.filter(
            name__in=root_names, articles__isnull=True, sub_categories__isnull=True
        ).delete()

        self.stdout.write(self.style.WARNING("Seeded news data cleared."))

    @staticmethod
    def _create_accounts() -> dict[str, Account]:
        accounts = {}
        for name, email, role, password in DEMO_ACCOUNTS:
            account, _ = Account.objects.get_or_create(
                email=email,
                defaults={
                    "name": name,
                    "role": role,
                    "password_hash": AccountManager.hash_password(password),
                },
            )
            accounts[email] = account
        return accounts

    @staticmethod
    def _create_categories() -> dict[str, Category]:
        """Create roots first so children can point at them."""
        categories: dict[str, Category] = {}
        ordered = sorted(DEMO_CATEGORIES.items(), key=lambda item: item[1][1] is not None)
        for name, (description, parent_name) in ordered:
            category, _ = Category.objects.get_or_create(
                name=name,
                defaults={
                    "description": description,
                    "parent": categories.get(parent_name) if parent_name else None,
                    "is_active": name != "Archive",
                },
            )
            categories[name] = category
        return categories

    @staticmethod
    def _create_articles(accounts, categories) -> None:
        for email, category_name, title, content, tags, status in DEMO_ARTICLES:
            author = accounts[email]
            article, created = NewsArticle.objects.get_or_create(
                title=title,
                created_by=author,
                defaults={
                    "content": content,
                    "category": categories[category_name],
                    "status": status,
                    "updated_by": author,
                },
            )
            if created:
                TagService.sync_for_article(article.pk, TagService.resolve_all(tags))
