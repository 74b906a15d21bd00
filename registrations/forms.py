from django import forms


class RegistrationForm(forms.Form):
    """Induction submission as posted by the public form (camelCase keys)."""

    name = forms.CharField(min_length=2, max_length=128, error_messages={"min_length": "Name must be at least 2 characters"})
    country = forms.CharField(max_length=64, error_messages={"required": "Country is required"})
    city = forms.CharField(max_length=64, error_messages={"required": "City is required"})
    dateOfBirth = forms.CharField(max_length=32, error_messages={"required": "Date of Birth is required"})
    maritalStatus = forms.CharField(max_length=32, error_messages={"required": "Marital Status is required"})
    occupation = forms.CharField(max_length=128, error_messages={"required": "Occupation is required"})
    salary = forms.CharField(max_length=64, error_messages={"required": "Salary/Income is required"})
    email = forms.EmailField(error_messages={"invalid": "Invalid email address"})
    phone = forms.CharField(min_length=5, max_length=32, error_messages={"min_length": "Valid phone number is required"})
    paymentMethod = forms.CharField(max_length=64, error_messages={"required": "Payment method selection is required"})
    personalPhoto = forms.CharField(error_messages={"required": "Personal photo is required"})
    idCardFront = forms.CharField(error_messages={"required": "ID card photo is required"})
    idCardBack = forms.CharField(required=False)

    def __init__(self, data=None, *args, **kwargs):
        if data is not None and not data.get("idCardFront") and data.get("idCardPhoto"):
            data = dict(data, idCardFront=data["idCardPhoto"])
        super().__init__(data, *args, **kwargs)

    def clean_email(self):
        return self.cleaned_data["email"].strip().lower()

