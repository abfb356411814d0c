from __future__ import annotations

from dataclasses import asdict

from django.http import JsonResponse

from flights.services import search


def places_autocomplete(request):
    if request.method != "GET":
        response = JsonResponse(
            {"ok": False, "kind": "request", "message": f'Method "{request.method}" not allowed.', "details": {}},
            status=405,
        )
        response["Allow"] = "GET"
        return response

    query = (request.GET.get("q") or "").strip()

    result = search.search_locations(query)
    if not result.ok:
        payload = {"query": query, "results": [], **result.error_payload()}
        return JsonResponse(payload, status=result.status_code or 502)

    results = [
        {"city": group["city_name"], "label": group["label"], "airports": group["airports"]}
        for group in map(asdict, result.data)
    ]
    return JsonResponse({"query": query, "results": results})
