#!/usr/bin/env python3
"""
起動中のサーバーに対して1日分の流れを流すスモークテスト。

    vlogwheel serve --port 3000
    python scripts/smoke_flow.py http://127.0.0.1:3000

GROUP_ID を設定しているならそのグループ ID を第2引数に渡す。
"""
import json
import sys
from urllib import request, error

BASE_URL = "http://127.0.0.1:3000"
GROUP = "smoke@g.us"


def api(method, path, body=None):
    url = BASE_URL + path
    data = None
    headers = {}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url, data=data, headers=headers, method=method)
    try:
        with request.urlopen(req, timeout=10) as resp:
            payload = resp.read().decode("utf-8")
            return resp.status, json.loads(payload) if payload else None
    except error.HTTPError as e:
        payload = e.read().decode("utf-8")
        try:
            return e.code, json.loads(payload)
        except ValueError:
            return e.code, {"detail": payload}
    except OSError as e:
        return 0, {"detail": str(e)}


def must_ok(status, data, label):
    if status < 200 or status >= 300:
        raise RuntimeError(f"{label} failed: {status} {data}")
    return data


def say(sender, text=None, media=None, chat=None):
    body = {"sender_id": sender, "chat_id": chat or GROUP}
    if text is not None:
        body["text"] = text
    if media is not None:
        body["media"] = media
    status, data = api("POST", "/api/messages", body)
    return must_ok(status, data, f"message {sender} {text or media}")


def main():
    global BASE_URL, GROUP
    if len(sys.argv) > 1:
        BASE_URL = sys.argv[1].rstrip("/")
    if len(sys.argv) > 2:
        GROUP = sys.argv[2]

    members = [f"smoke{i}@s.whatsapp.net" for i in range(1, 4)]
    for member_id in members:
        say(members[0], f"!addmember {member_id}")

    cycle = must_ok(*api("POST", "/api/cycle/run"), "cycle/run")
    picked = cycle["picked_member_id"]
    if picked is None:
        # 空ロスター
        raise RuntimeError(f"no pick: {cycle}")
    print(f"[cycle] {cycle['day_key']} pick={picked} created={cycle['created']}")

    submitted = say(picked, media="video")
    print(f"[submit] {submitted['action']} id={submitted['submission_id']}")

    voter = next(m for m in members if m != picked)
    voted = say(voter, "approve")
    for line in voted["replies"]:
        print(f"[vote] {line}")

    status = must_ok(*api("GET", "/api/status"), "status")
    board = must_ok(*api("GET", "/api/leaderboard"), "leaderboard")
    print(f"[status] members={status['members']} today={status['today']}")
    for item in board:
        print(f"[leaderboard] {item['display_name']}: {item['current_length']}")

    print("OK")


if __name__ == "__main__":
    try:
        main()
    except RuntimeError as e:
        print(f"NG: {e}")
        sys.exit(1)
