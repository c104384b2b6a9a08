from __future__ import annotations

import concurrent.futures
import ctypes
import json
import threading

import httpx
import pytest

from voicebridge import ffi
from voicebridge.services import orchestration


@pytest.fixture(autouse=True)
def _fresh_runtime():
    yield
    ffi.shutdown()


@pytest.fixture
def wired_pipeline(monkeypatch, fake_openai):
    def fake_run_pipeline(api_key, audio_path, output_path):  # noqa: ANN001
        return orchestration.run_pipeline(api_key, audio_path, output_path, transport=fake_openai.transport)

    monkeypatch.setattr(ffi, "run_pipeline", fake_run_pipeline)
    return fake_openai


def _consume(address: int) -> str:
    try:
        return ffi.read_string(address)
    finally:
        ffi.free_string(address)


def test_process_audio_success_returns_owned_string(wired_pipeline, sample_wav, tmp_path) -> None:
    output = tmp_path / "response.txt"
    before = ffi.live_allocations()

    address = ffi.process_audio(b"sk-test", str(sample_wav).encode(), str(output).encode())

    assert ffi.live_allocations() == before + 1
    assert _consume(address) == "Success"
    assert ffi.live_allocations() == before
    assert output.read_bytes() == b"Hi there!"


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        ((None, b"in.wav", b"out.txt"), "Error: API key is null"),
        ((b"sk-test", None, b"out.txt"), "Error: Audio path is null"),
        ((b"sk-test", b"in.wav", None), "Error: Output path is null"),
        ((b"", b"in.wav", b"out.txt"), "Error: API key is empty"),
        ((b"sk-test", b"", b"out.txt"), "Error: Audio path is empty"),
        ((b"sk-test", b"in.wav", b"\xff\xfe"), "Error: Output path is not valid UTF-8"),
    ],
)
def test_invalid_arguments_never_start_the_pipeline(monkeypatch, args, expected) -> None:
    def explode(*_args, **_kwargs):  # noqa: ANN002, ANN003
        raise AssertionError("pipeline must not start for invalid input")

    monkeypatch.setattr(ffi, "run_pipeline", explode)

    assert _consume(ffi.process_audio(*args)) == expected


def test_pipeline_failure_is_rendered_as_error(wired_pipeline, sample_wav, tmp_path) -> None:
    wired_pipeline.transcription_status = 500
    wired_pipeline.transcription_body = "server error"

    address = ffi.process_audio(b"sk-test", str(sample_wav).encode(), str(tmp_path / "out.txt").encode())

    assert _consume(address) == "Error: API error: server error"


def test_unexpected_crash_is_reported_not_raised(monkeypatch) -> None:
    def crash(*_args, **_kwargs):  # noqa: ANN002, ANN003
        raise RuntimeError("runtime unavailable")

    monkeypatch.setattr(ffi, "run_pipeline", crash)

    assert _consume(ffi.process_audio(b"sk", b"a.wav", b"b.txt")) == "Error: Internal error: runtime unavailable"


def test_recognize_image_is_a_placeholder() -> None:
    assert _consume(ffi.recognize_image(b"sk-test", b"photo.png")) == "Image recognition not implemented yet"
    assert _consume(ffi.recognize_image(None, None)) == "Image recognition not implemented yet"


def test_hello_round_trips() -> None:
    assert _consume(ffi.hello()) == "Hello from voicebridge!"


def test_free_string_accepts_null() -> None:
    before = ffi.live_allocations()
    ffi.free_string(None)
    ffi.free_string(0)
    assert ffi.live_allocations() == before


def test_free_string_releases_exactly_once() -> None:
    address = ffi.hello()
    ffi.free_string(address)

    with pytest.raises(KeyError):
        ffi.free_string(address)


def test_exported_c_functions_are_callable(wired_pipeline, sample_wav, tmp_path) -> None:
    symbols = ffi.export_symbols()
    output = tmp_path / "via-c.txt"

    address = symbols["process_audio"](b"sk-test", str(sample_wav).encode(), str(output).encode())
    assert ctypes.string_at(address) == b"Success"
    symbols["free_string"](address)
    symbols["free_string"](None)

    hello_address = symbols["hello"]()
    assert ctypes.string_at(hello_address) == b"Hello from voicebridge!"
    symbols["free_string"](hello_address)

    assert output.read_bytes() == b"Hi there!"
    assert set(ffi.symbol_addresses()) == set(symbols)
    assert all(isinstance(value, int) and value for value in ffi.symbol_addresses().values())


def test_concurrent_invocations_do_not_interfere(monkeypatch, tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/audio/transcriptions"):
            name = "first" if b'filename="first.wav"' in request.content else "second"
            return httpx.Response(200, json={"text": f"{name} transcript"})
        prompt = json.loads(request.content)["messages"][0]["content"]
        return httpx.Response(200, json={"choices": [{"message": {"content": f"reply to {prompt}"}}]})

    transport = httpx.MockTransport(handler)

    def fake_run_pipeline(api_key, audio_path, output_path):  # noqa: ANN001
        return orchestration.run_pipeline(api_key, audio_path, output_path, transport=transport)

    monkeypatch.setattr(ffi, "run_pipeline", fake_run_pipeline)

    results: dict[str, str] = {}
    jobs = []
    for name in ("first", "second"):
        audio = tmp_path / f"{name}.wav"
        audio.write_bytes(b"RIFF" + name.encode())
        output = tmp_path / f"{name}.txt"
        jobs.append((name, audio, output))

    def invoke(name, audio, output):  # noqa: ANN001
        results[name] = _consume(ffi.process_audio(b"sk-test", str(audio).encode(), str(output).encode()))

    threads = [threading.Thread(target=invoke, args=job) for job in jobs]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert results == {"first": "Success", "second": "Success"}
    assert (tmp_path / "first.txt").read_text() == "reply to first transcript"
    assert (tmp_path / "second.txt").read_text() == "reply to second transcript"


def test_cancelled_run_reports_exception_name(monkeypatch) -> None:
    def cancelled(*_args, **_kwargs):  # noqa: ANN002, ANN003
        raise concurrent.futures.CancelledError()

    monkeypatch.setattr(ffi, "run_pipeline", cancelled)

    assert _consume(ffi.process_audio(b"sk", b"a.wav", b"b.txt")) == "Error: Internal error: CancelledError"
