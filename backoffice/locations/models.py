from django.db import models


class Branch(models.Model):
    """Bakery outlets. Stock with no branch belongs to the central factory."""
    branch_code = models.CharField(max_length=20, unique=True, help_text="Short code such as B001")
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'branches'
        ordering = ['name']
