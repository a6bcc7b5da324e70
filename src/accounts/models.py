from django.contrib.auth.models import (
    AbstractBaseUser,
    BaseUserManager,
    PermissionsMixin,
)
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    """Custom manager for the User model that uses email as the unique identifier."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("An email address is required.")
        email = self.normalize_email(email)
        extra_fields.setdefault("is_active", True)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)

    def admins(self):
        return self.filter(role=User.Role.ADMIN, is_active=True)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Sales team member.

    Uses email as the unique identifier instead of a username. Zone users
    only see the offers and customers of the service zones they are
    assigned to; admins see everything.
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Administrator"
        ZONE_MANAGER = "ZONE_MANAGER", "Zone manager"
        ZONE_USER = "ZONE_USER", "Zone user"

    email = models.EmailField(
        "email address",
        unique=True,
        error_messages={
            "unique": "A user with this email address already exists.",
        },
    )
    name = models.CharField("name", max_length=150)
    short_form = models.CharField("short form", max_length=20, blank=True, default="")
    phone = models.CharField("phone", max_length=30, blank=True, default="")
    role = models.CharField(
        "role",
        max_length=20,
        choices=Role.choices,
        default=Role.ZONE_USER,
        db_index=True,
    )
    is_active = models.BooleanField("active", default=True, db_index=True)
    is_staff = models.BooleanField("staff status", default=False)
    date_joined = models.DateTimeField("date joined", default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["name"]

    def __str__(self):
        return self.name or self.email

    def get_full_name(self):
        return self.name

    def get_short_name(self):
        return self.short_form or self.name.split(" ")[0]

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN

    def zone_ids(self):
        """Ids of the active service zones this user is assigned to."""
        return list(
            self.service_zones.filter(is_active=True).values_list("id", flat=True)
        )
