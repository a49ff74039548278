import requests
import json

BASE_URL = "http://localhost:8002/api/v1"
EMAIL = "verify_test_new@example.com"
PASSWORD = "SecurePassword123!"

def print_response(name, response):
    print(f"--- {name} ---")
    print(f"Status: {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)
    print("\n")

def run_verification():
    # 1. Register
    print("1. Registering User...")
    resp = requests.post(f"{BASE_URL}/auth/register", json={
        "email": EMAIL,
        "password": PASSWORD
    })
    print_response("Register", resp)

    # 2. Login
    print("2. Logging in...")
    resp = requests.post(f"{BASE_URL}/auth/token", data={
        "username": EMAIL,
        "password": PASSWORD
    })
    print_response("Login", resp)
    if resp.status_code != 200:
        print("Login failed, aborting.")
        return
    token = resp.json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    # 3. Create a draft post
    print("3. Creating Post...")
    resp = requests.post(f"{BASE_URL}/posts/", headers=headers, json={
        "title": "Verification post",
        "category": "News"
    })
    print_response("Create Post", resp)
    if resp.status_code != 200:
        print("Post creation failed, aborting.")
        return
    post_id = resp.json()["post"]["id"]

    # 4. Add blocks
    print("4. Adding Blocks...")
    resp = requests.post(f"{BASE_URL}/posts/{post_id}/blocks", headers=headers, json={
        "type": "text",
        "content": {"html": "<p>Hello</p>", "word_count": 1},
        "order_index": 0
    })
    print_response("Add Text Block", resp)

    # Rejected: two text blocks in a row
    resp = requests.post(f"{BASE_URL}/posts/{post_id}/blocks", headers=headers, json={
        "type": "text",
        "content": {"html": "<p>Again</p>", "word_count": 1},
        "order_index": 1
    })
    print_response("Add Consecutive Text Block (expect 400)", resp)

    resp = requests.post(f"{BASE_URL}/posts/{post_id}/blocks", headers=headers, json={
        "type": "quote",
        "content": {"quote": "Stay curious"},
        "order_index": 1
    })
    print_response("Add Quote Block", resp)

    # 5. List blocks
    print("5. Listing Blocks...")
    resp = requests.get(f"{BASE_URL}/posts/{post_id}/blocks")
    print_response("List Blocks", resp)

    # 6. Delete the post
    print("6. Deleting Post...")
    resp = requests.delete(f"{BASE_URL}/posts/{post_id}", headers=headers)
    print_response("Delete Post", resp)

if __name__ == "__main__":
    run_verification()
