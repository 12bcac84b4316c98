"""Async client for the site user side of the API.

Every response body is parsed through the same pydantic schemas the server
uses, so a change in response shape fails here with a ValidationError instead
of surfacing later as a missing key.
"""
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import httpx
from pydantic import TypeAdapter

from schemas import (SiteUserAuthResponse, SiteUserResponse, CheckAuthResponse, MessageResponse,
                     PlaceResponse, PlaceCategoryResponse, PublicShopResponse, LikeResponse,
                     FavouritesResponse, PlaceCommentResponse)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class AppContext:
    """Signed-in state for one client: created empty, filled on login, cleared on logout."""

    def __init__(self, token: Optional[str] = None, user: Optional[SiteUserResponse] = None):
        self.token = token
        self.user = user

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def sign_in(self, token: str, user: SiteUserResponse) -> None:
        self.token = token
        self.user = user

    def sign_out(self) -> None:
        self.token = None
        self.user = None

    def auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}


class PlacesApiClient:
    def __init__(self, base_url: str = "http://localhost:8000", context: Optional[AppContext] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.context = context or AppContext()
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def _request(self, method: str, url: str, response_type: Any, **kwargs):
        headers = {**self.context.auth_headers(), **kwargs.pop("headers", {})}
        response = await self._http.request(method, url, headers=headers, **kwargs)
        if response.is_error:
            try:
                message = response.json().get("message", response.reason_phrase)
            except ValueError:
                message = response.reason_phrase
            raise ApiError(response.status_code, message)
        return TypeAdapter(response_type).validate_python(response.json())

    # site user account

    async def signup(self, email: str, password: str, name: str) -> SiteUserAuthResponse:
        return await self._request("POST", "/api/siteuser/signup", SiteUserAuthResponse,
                                   json={"email": email, "password": password, "name": name})

    async def verify_email(self, code: str, email: Optional[str] = None) -> SiteUserResponse:
        result = await self._request("POST", "/api/siteuser/verify-email", SiteUserAuthResponse,
                                     json={"code": code, "email": email})
        self.context.sign_in(result.token, result.user)
        return result.user

    async def login(self, email: str, password: str) -> SiteUserResponse:
        result = await self._request("POST", "/api/siteuser/login", SiteUserAuthResponse,
                                     json={"email": email, "password": password})
        self.context.sign_in(result.token, result.user)
        return result.user

    async def check_auth(self) -> Optional[SiteUserResponse]:
        """Refresh the stored user; an expired or rejected token signs the context out."""
        if not self.context.is_authenticated:
            return None
        try:
            result = await self._request("GET", "/api/siteuser/check-auth", CheckAuthResponse)
        except ApiError as exc:
            if exc.status_code == 401:
                self.context.sign_out()
                return None
            raise
        self.context.user = result.user
        return result.user

    def logout(self) -> None:
        self.context.sign_out()

    async def forgot_password(self, email: str) -> MessageResponse:
        return await self._request("POST", "/api/siteuser/forgot-password", MessageResponse, json={"email": email})

    async def reset_password(self, token: str, password: str) -> MessageResponse:
        return await self._request("POST", f"/api/siteuser/reset-password/{token}", MessageResponse,
                                   json={"password": password})

    # places

    async def list_places(self) -> List[PlaceResponse]:
        return await self._request("GET", "/api/place", List[PlaceResponse])

    async def get_place(self, place_id: str) -> PlaceResponse:
        return await self._request("GET", f"/api/place/{place_id}", PlaceResponse)

    async def create_place(self, title: str, location: str, description: Optional[str] = None,
                           categories: Iterable[str] = (),
                           images: Sequence[Tuple[str, bytes, str]] = ()) -> PlaceResponse:
        """``images`` are ``(filename, content, content_type)`` tuples."""
        data = {"title": title, "location": location, "categories": [str(c) for c in categories]}
        if description is not None:
            data["description"] = description
        files = [("images", image) for image in images]
        return await self._request("POST", "/api/place", PlaceResponse, data=data, files=files or None)

    async def delete_place(self, place_id: str) -> MessageResponse:
        return await self._request("DELETE", f"/api/place/{place_id}", MessageResponse)

    async def toggle_place_like(self, place_id: str) -> LikeResponse:
        return await self._request("POST", f"/api/place/{place_id}/like", LikeResponse)

    async def my_place_categories(self) -> List[PlaceCategoryResponse]:
        return await self._request("GET", "/api/placecat/user", List[PlaceCategoryResponse])

    async def create_place_category(self, name: str) -> PlaceCategoryResponse:
        return await self._request("POST", "/api/placecat", PlaceCategoryResponse, json={"name": name})

    async def comment_on_place(self, place_id: str, message: str, rating: int) -> PlaceCommentResponse:
        return await self._request("POST", "/api/placecomment", PlaceCommentResponse,
                                   json={"place": str(place_id), "message": message, "rating": rating})

    # shops and favourites

    async def list_shops(self) -> List[PublicShopResponse]:
        return await self._request("GET", "/api/shops/all", List[PublicShopResponse])

    async def toggle_shop_like(self, shop_id: str) -> LikeResponse:
        return await self._request("POST", f"/api/shops/{shop_id}/like", LikeResponse)

    async def favourites(self) -> List[PublicShopResponse]:
        return await self._request("GET", "/api/favourites", List[PublicShopResponse])

    async def add_favourite(self, shop_id: str) -> FavouritesResponse:
        return await self._request("POST", "/api/favourites", FavouritesResponse, json={"shopId": str(shop_id)})

    async def remove_favourite(self, shop_id: str) -> FavouritesResponse:
        return await self._request("DELETE", f"/api/favourites/{shop_id}", FavouritesResponse)
