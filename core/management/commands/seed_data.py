import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from bids.models import Bid
from projects.models import Favorite, Project

User = get_user_model()


class Command(BaseCommand):
    help = "Seeds the database with sample clients, freelancers, projects and bids"

    def add_arguments(self, parser):
        parser.add_argument("--bids", type=int, default=2, help="Bids per published project")

    def handle(self, *args, **options):
        self.stdout.write("🌱 Seeding data...")

        # 1. Ensure Users
        admin, _ = User.objects.get_or_create(username="admin", defaults={"email": "admin@example.com", "role": "admin"})
        if not admin.check_password("admin"):
            admin.set_password("admin")
            admin.is_staff = True
            admin.save()

        anna, _ = User.objects.get_or_create(
            username="anna", defaults={"email": "anna@example.com", "role": User.ROLE_CLIENT, "city": "Москва"}
        )
        anna.set_password("password")
        anna.save()

        freelancers = []
        for username, first_name in [("ivan", "Иван"), ("olga", "Ольга"), ("timur", "Тимур")]:
            user, _ = User.objects.get_or_create(
                username=username,
                defaults={"email": f"{username}@example.com", "role": User.ROLE_FREELANCER, "first_name": first_name},
            )
            user.set_password("password")
            user.save()
            freelancers.append(user)

        # 2. Create Projects
        projects_data = [
            {
                "title": "Интернет-магазин цветов",
                "description": "Каталог, корзина, оплата картой и личный кабинет покупателя.",
                "category": "web",
                "skills": ["python", "django", "react"],
                "budget_amount": Decimal("120000"),
                "is_remote": True,
            },
            {
                "title": "Логотип для кофейни",
                "description": "Нужен логотип и фирменные цвета для небольшой кофейни у метро.",
                "category": "design",
                "skills": ["illustrator", "branding"],
                "budget_amount": Decimal("15000"),
                "city": "Москва",
            },
            {
                "title": "Телеграм-бот для записи к мастеру",
                "description": "Бот показывает свободные окна и записывает клиента в Google Calendar.",
                "category": "bots",
                "skills": ["python", "aiogram"],
                "budget_type": Project.BUDGET_PRICE_REQUEST,
                "is_remote": True,
            },
        ]

        for data in projects_data:
            project, created = Project.objects.get_or_create(
                title=data["title"],
                client=anna,
                defaults={
                    **data,
                    "status": Project.STATUS_PUBLISHED,
                    "published_at": timezone.now(),
                    "moderation_verdict": "safe",
                },
            )
            if created:
                self.stdout.write(f"Created Project: {project.title}")

            # 3. Bids
            for freelancer in random.sample(freelancers, k=min(options["bids"], len(freelancers))):
                price = project.budget_amount or Decimal("10000")
                _bid, bid_created = Bid.objects.get_or_create(
                    project=project,
                    freelancer=freelancer,
                    defaults={
                        "proposal": f"Здравствуйте! Готов взяться за «{project.title}».",
                        "price": (price * Decimal(random.choice(["0.8", "0.9", "1.0"]))).quantize(Decimal("0.01")),
                        "delivery_days": random.randint(5, 30),
                    },
                )
                if bid_created:
                    project.proposals_count = Bid.objects.filter(project=project).exclude(
                        status=Bid.STATUS_WITHDRAWN
                    ).count()
                    project.save(update_fields=["proposals_count"])

            for freelancer in freelancers:
                if random.choice([True, False]):
                    Favorite.objects.get_or_create(user=freelancer, project=project)

        self.stdout.write(self.style.SUCCESS("✅ Seeding Complete!"))
