"""Async functional registry operations."""

from typing import Any

from .core.registry_client import RegistryClient
from .core.types import Credentials, RegistryConfig
from .models import ImageInfo


def _client(
    registry_url: str,
    username: str | None,
    password: str | None,
    timeout: float | None,
) -> RegistryClient:
    return RegistryClient(
        credentials=Credentials(registry_url, username, password),
        config=RegistryConfig(timeout=timeout),
    )


async def check_registry_connectivity(
    registry_url: str,
    username: str | None = None,
    password: str | None = None,
    timeout: float | None = 10,
) -> bool:
    """레지스트리 연결 상태를 확인합니다.

    Args:
        registry_url: 레지스트리 URL (예: "http://localhost:15000")
        username: 사용자 이름 (익명 레지스트리는 생략)
        password: 비밀번호 (익명 레지스트리는 생략)
        timeout: 요청 타임아웃 (초, 기본값: 10초)

    Returns:
        bool: 레지스트리가 v2 API로 응답하면 True

    Examples:
        accessible = await check_registry_connectivity("http://localhost:15000")
    """
    async with _client(registry_url, username, password, timeout) as client:
        result = await client.test_connection()
    return result.success


async def list_repositories(
    registry_url: str,
    username: str | None = None,
    password: str | None = None,
    timeout: float | None = 10,
) -> list[str]:
    """레지스트리의 모든 저장소 목록을 조회합니다.

    카탈로그를 페이지 단위로 끝까지 조회하며, 요청은 순서대로 하나씩 전송됩니다.

    Args:
        registry_url: 레지스트리 URL (예: "http://localhost:15000")
        username: 사용자 이름 (익명 레지스트리는 생략)
        password: 비밀번호 (익명 레지스트리는 생략)
        timeout: 요청 타임아웃 (초, 기본값: 10초)

    Returns:
        list[str]: 저장소 이름 목록 (예: ["nginx", "myapp", "test/image"])

    Raises:
        RegistryError: 요청 실패 시

    Examples:
        repos = await list_repositories("http://localhost:15000")
        print(f"발견된 저장소: {repos}")
    """
    async with _client(registry_url, username, password, timeout) as client:
        return await client.get_all_repositories()


async def list_tags(
    registry_url: str,
    repository: str,
    username: str | None = None,
    password: str | None = None,
    timeout: float | None = 10,
) -> list[str]:
    """특정 저장소의 모든 태그 목록을 조회합니다.

    Args:
        registry_url: 레지스트리 URL (예: "http://localhost:15000")
        repository: 저장소 이름 (예: "nginx", "mycompany/myapp")
        username: 사용자 이름 (익명 레지스트리는 생략)
        password: 비밀번호 (익명 레지스트리는 생략)
        timeout: 요청 타임아웃 (초, 기본값: 10초)

    Returns:
        list[str]: 태그 이름 목록 (태그가 없으면 빈 목록)

    Raises:
        RegistryError: 요청 실패 시

    Examples:
        tags = await list_tags("http://localhost:15000", "nginx")
        print(f"nginx 태그: {tags}")
    """
    async with _client(registry_url, username, password, timeout) as client:
        result = await client.get_tags(repository)
    return (result.get("tags") if isinstance(result, dict) else None) or []


async def get_manifest(
    registry_url: str,
    repository: str,
    reference: str,
    username: str | None = None,
    password: str | None = None,
    timeout: float | None = 10,
) -> dict[str, Any]:
    """이미지의 매니페스트를 조회합니다.

    멀티 플랫폼 이미지는 매니페스트 리스트(이미지 인덱스)가 반환됩니다.

    Args:
        registry_url: 레지스트리 URL (예: "http://localhost:15000")
        repository: 저장소 이름 (예: "nginx", "mycompany/myapp")
        reference: 태그 또는 digest (예: "latest", "sha256:abc123...")
        username: 사용자 이름 (익명 레지스트리는 생략)
        password: 비밀번호 (익명 레지스트리는 생략)
        timeout: 요청 타임아웃 (초, 기본값: 10초)

    Returns:
        dict[str, Any]: 매니페스트 딕셔너리 (Docker Registry API v2 / OCI 스키마)

    Raises:
        RegistryError: 요청 실패 시
    """
    async with _client(registry_url, username, password, timeout) as client:
        return await client.get_manifest(repository, reference)


async def get_image_info(
    registry_url: str,
    repository: str,
    tag: str,
    username: str | None = None,
    password: str | None = None,
    timeout: float | None = 10,
) -> ImageInfo:
    """이미지의 상세 정보를 조회합니다.

    단일 플랫폼 이미지와 멀티 플랫폼 이미지 모두 같은 ImageInfo 형태로 반환됩니다.
    설정(config) blob 조회에 실패해도 예외 없이 생성일 등의 필드만 비어 있게 됩니다.

    Args:
        registry_url: 레지스트리 URL (예: "http://localhost:15000")
        repository: 저장소 이름 (예: "nginx", "mycompany/myapp")
        tag: 태그 이름 (예: "latest", "v1.0.0")
        username: 사용자 이름 (익명 레지스트리는 생략)
        password: 비밀번호 (익명 레지스트리는 생략)
        timeout: 요청 타임아웃 (초, 기본값: 10초)

    Returns:
        ImageInfo: 이미지 정보 (아키텍처, OS, 크기, 생성일, 플랫폼 목록 등)

    Raises:
        RegistryError: 매니페스트 조회 실패 시

    Examples:
        info = await get_image_info("http://localhost:15000", "nginx", "latest")
        print(f"아키텍처: {info.architecture or '알 수 없음'}")
        print(f"크기: {info.total_size:,} bytes")
    """
    async with _client(registry_url, username, password, timeout) as client:
        return await client.get_image_info(repository, tag)


async def delete_manifest(
    registry_url: str,
    repository: str,
    digest: str,
    username: str | None = None,
    password: str | None = None,
    timeout: float | None = 10,
) -> None:
    """매니페스트 digest로 이미지를 삭제합니다.

    Args:
        registry_url: 레지스트리 URL (예: "http://localhost:15000")
        repository: 저장소 이름 (예: "nginx", "mycompany/myapp")
        digest: 매니페스트 digest (예: "sha256:abc123...")
        username: 사용자 이름 (익명 레지스트리는 생략)
        password: 비밀번호 (익명 레지스트리는 생략)
        timeout: 요청 타임아웃 (초, 기본값: 10초)

    Raises:
        RegistryError: 삭제 실패 시

    Note:
        레지스트리에서 REGISTRY_STORAGE_DELETE_ENABLED=true 설정이 필요합니다.
        digest로 삭제하면 해당 매니페스트를 참조하는 모든 태그가 영향받을 수 있습니다.
    """
    async with _client(registry_url, username, password, timeout) as client:
        await client.delete_manifest(repository, digest)
