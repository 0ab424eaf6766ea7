"""Manual smoke run against a live server: python test.py"""
import os
import uuid
import requests

BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:5000")
PASSWORD = "hanoihue"


# Step 1: Register a user
def register_user(tag):
    url = f"{BASE_URL}/api/users/register"
    payload = {
        "username": f"smoke_{tag}",
        "email": f"smoke_{tag}@example.com",
        "password": PASSWORD,
    }
    response = requests.post(url, json=payload)
    print("Register Response:", response.json())
    return response.status_code == 201


# Step 2: Login
def login_user(tag):
    url = f"{BASE_URL}/api/users/login"
    payload = {"email": f"smoke_{tag}@example.com", "password": PASSWORD}
    response = requests.post(url, json=payload)
    print("Login Response:", response.json())
    if response.status_code == 200:
        body = response.json()
        return body.get("token"), body["user"]["id"]
    return None, None


# Step 3: Publish a service
def create_service(token):
    headers = {"Authorization": f"Bearer {token}"}
    payload = {"title": "Logo design", "description": "Vector logo in two days", "price": 40}
    response = requests.post(f"{BASE_URL}/api/services", json=payload, headers=headers)
    print("Create Service Response:", response.json())
    return response.json()["service"]["id"] if response.status_code == 201 else None


# Step 4: Message the owner about the service and read the thread back
def message_owner(token, owner_id, service_id):
    headers = {"Authorization": f"Bearer {token}"}
    payload = {"receiverId": owner_id, "serviceId": service_id, "content": "Is this still available?"}
    response = requests.post(f"{BASE_URL}/api/messages", json=payload, headers=headers)
    print("Send Message Response:", response.json())

    thread = requests.get(
        f"{BASE_URL}/api/messages/thread/{owner_id}",
        params={"serviceId": service_id},
        headers=headers,
    )
    print("Thread Response:", thread.json())


# Main Flow
if __name__ == "__main__":
    owner_tag, buyer_tag = uuid.uuid4().hex[:8], uuid.uuid4().hex[:8]
    if register_user(owner_tag) and register_user(buyer_tag):
        owner_token, owner_id = login_user(owner_tag)
        buyer_token, _ = login_user(buyer_tag)
        if owner_token and buyer_token:
            service_id = create_service(owner_token)
            if service_id:
                message_owner(buyer_token, owner_id, service_id)
        else:
            print("Login failed.")
    else:
        print("Registration failed.")
