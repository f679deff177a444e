# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_CLIENT = 'client'
    ROLE_FREELANCER = 'freelancer'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = (
        (ROLE_CLIENT, 'Client'),
        (ROLE_FREELANCER, 'Freelancer'),
        (ROLE_ADMIN, 'Admin'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_CLIENT
    )

    phone = models.CharField(max_length=20, blank=True, null=True)
    bio = models.TextField(blank=True, null=True)
    avatar_url = models.CharField(max_length=1024, blank=True, null=True)
    city = models.CharField(max_length=120, blank=True, null=True)

    # Supabase auth user id (JWT "sub")
    supabase_uid = models.CharField(max_length=64, unique=True, blank=True, null=True)

    # Cached aggregates, recomputed from verified reviews
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    reviews_count = models.PositiveIntegerField(default=0)
    completed_projects = models.PositiveIntegerField(default=0)

    def __str__(self):
        return self.username

    @property
    def display_name(self):
        return self.get_full_name() or self.username
