from portal.http import json_body, json_view

from .services import submit_registration


@json_view("POST", csrf=False)
def register(request):
    registration = submit_registration(json_body(request))
    return {"success": True, "id": registration.pk, "uniqueCode": registration.unique_code}
