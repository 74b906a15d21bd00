from django import forms


class OrderForm(forms.Form):
    uniqueCode = forms.CharField(max_length=32, error_messages={"required": "Registration code is required"})
    itemId = forms.IntegerField(error_messages={"required": "Choose an artifact", "invalid": "Artifact not found in records."})
    paymentMethod = forms.CharField(max_length=64, error_messages={"required": "Payment method selection is required"})


class TrackForm(forms.Form):
    registrationCode = forms.CharField(max_length=32)
    orderNumber = forms.CharField(max_length=16)


class ItemForm(forms.Form):
    name = forms.CharField(max_length=128)
    price = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    description = forms.CharField()
    mysticalProperties = forms.CharField(required=False)
    image = forms.URLField(required=False, max_length=500)


class PaymentMethodForm(forms.Form):
    name = forms.CharField(max_length=64)
    description = forms.CharField(required=False)
    details = forms.CharField(required=False)
    isActive = forms.BooleanField(required=False)
