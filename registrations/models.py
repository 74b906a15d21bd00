from django.db import models


class Registration(models.Model):
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    name = models.CharField(max_length=128)
    country = models.CharField(max_length=64)
    city = models.CharField(max_length=64)
    date_of_birth = models.CharField(max_length=32)
    marital_status = models.CharField(max_length=32)
    occupation = models.CharField(max_length=128)
    salary = models.CharField(max_length=64)
    email = models.EmailField()
    phone = models.CharField(max_length=32)
    payment_method = models.CharField(max_length=64)

    personal_photo_url = models.URLField(max_length=500)
    id_card_front_url = models.URLField(max_length=500)
    id_card_back_url = models.URLField(max_length=500, blank=True, default="")

    # RC-XXXX-XXXX; indexed for lookups but deliberately not unique
    unique_code = models.CharField(max_length=16, blank=True, default="", db_index=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        return f"{self.unique_code or 'RC-?'} {self.name} ({self.status})"

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "uniqueCode": self.unique_code,
            "name": self.name,
            "country": self.country,
            "city": self.city,
            "dateOfBirth": self.date_of_birth,
            "maritalStatus": self.marital_status,
            "occupation": self.occupation,
            "salary": self.salary,
            "email": self.email,
            "phone": self.phone,
            "paymentMethod": self.payment_method,
            "personalPhoto": self.personal_photo_url,
            "idCardFront": self.id_card_front_url,
            "idCardBack": self.id_card_back_url,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
