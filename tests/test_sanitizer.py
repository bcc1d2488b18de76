from fled_notify.services.sanitizer import TokenSanitizer


async def test_purges_every_documented_shape(store, sanitizer):
    store.docs["users/u1"] = {"fcmToken": "T", "fcmTokens": ["T", "other"]}
    store.docs["users/u1/devices/d1"] = {"token": "T"}
    store.docs["parents/p1"] = {"fcmToken": "T", "email": "a@b.c"}
    store.docs["parents/p1/devices/d9"] = {"token": "T"}
    store.docs["users/u2"] = {"fcmToken": "untouched"}

    report = await sanitizer.purge({"T"})

    assert "users/u1/devices/d1" not in store.docs
    assert "parents/p1/devices/d9" not in store.docs
    assert "fcmToken" not in store.docs["users/u1"]
    assert "fcmToken" not in store.docs["parents/p1"]
    assert store.docs["users/u1"]["fcmTokens"] == ["other"]
    assert store.docs["users/u2"]["fcmToken"] == "untouched"
    assert report.devices_removed == 2
    assert report.fields_cleared == 2
    assert report.array_entries_removed == 1
    assert report.errors == 0


async def test_token_records_in_collection_are_left_alone(store, sanitizer):
    store.docs["users/u1"] = {"fcmTokens": [{"token": "T", "device": "Chrome on Mac"}]}

    await sanitizer.purge(["T"])

    assert store.docs["users/u1"]["fcmTokens"] == [{"token": "T", "device": "Chrome on Mac"}]


async def test_failed_removal_does_not_stop_the_rest(store, sanitizer):
    store.docs["users/u1"] = {"fcmToken": "T"}
    store.docs["users/u1/devices/d1"] = {"token": "T"}
    store.docs["users/u1/devices/d2"] = {"token": "T"}
    store.docs["users/u3"] = {"fcmToken": "U"}
    store.fail("delete", "users/u1/devices/d1")

    report = await sanitizer.purge(["T", "U"])

    assert "users/u1/devices/d1" in store.docs
    assert "users/u1/devices/d2" not in store.docs
    assert "fcmToken" not in store.docs["users/u1"]
    assert "fcmToken" not in store.docs["users/u3"]
    assert report.errors == 1


async def test_query_failure_is_contained(store, sanitizer):
    store.docs["users/u1"] = {"fcmToken": "T"}
    store.fail("collection_group_where", "devices")

    report = await sanitizer.purge(["T"])

    assert "fcmToken" not in store.docs["users/u1"]
    assert report.errors == 1


async def test_empty_input_touches_nothing(store, sanitizer):
    report = await sanitizer.purge([])

    assert report.tokens == 0
    assert store.ops == []


async def test_custom_collection_names(store, settings):
    settings.PRINCIPALS_COLLECTION = "teachers"
    settings.DEVICES_COLLECTION_GROUP = "registrations"
    store.docs["teachers/t1"] = {"fcmToken": "T"}
    store.docs["teachers/t1/registrations/r1"] = {"token": "T"}

    await TokenSanitizer(store, settings).purge(["T"])

    assert store.docs["teachers/t1"] == {}
    assert "teachers/t1/registrations/r1" not in store.docs
