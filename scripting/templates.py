#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fixed AppleScript subroutines prepended to every generated program.

The library is also what the script engine compiles once at startup; the
engine entry points (fixArtwork, fixArtworkWithImage) take only text,
boolean and image parameters so one compiled instance serves every batch.
"""

from enum import Enum
from typing import Optional

TEMPLATE_VERSION = 3

APPLICATION = "Music"

# Handler names defined below
DRIVER_HANDLER = "fixAlbumArtwork"
CLIPBOARD_IMAGE_HANDLER = "clipboardImage"
PARTIAL_IMAGE_HANDLER = "findPartialImage"
VERIFY_TRACK_HANDLER = "verifyTrack"
FIX_ARTWORK_HANDLER = "fixArtwork"
FIX_ARTWORK_WITH_IMAGE_HANDLER = "fixArtworkWithImage"

LOG_PREFIX = "Error Trying to Fix Artwork: "


class DriverFailure(Enum):
    """Error numbers raised by the driver subroutines"""
    SEARCH_FAILED = 501
    NO_IMAGE_FOUND = 502
    CANNOT_RESET_ARTWORK = 503
    CANNOT_SET_ARTWORK = 504

    @classmethod
    def from_number(cls, number: Optional[int]) -> Optional['DriverFailure']:
        for failure in cls:
            if failure.value == number:
                return failure
        return None


FIX_ALBUM_ARTWORK_DEFINITION = """\
-- missing-art template library v3
on clipboardImage(ignored)
  set imageData to missing value
  if ((clipboard info) as string) contains "«class PNGf»" then
    set imageData to (the clipboard as «class PNGf»)
  end if
  return imageData
end clipboardImage
on findPartialImage(results)
  set imageData to missing value
  tell application "Music"
    repeat with trk in results
      if (count of artworks of trk) is not 0 then
        set imageData to data of item 1 of artworks of trk
        exit repeat
      end if
    end repeat
  end tell
  return imageData
end findPartialImage
on verifyTrack(trk, albumString, artistString)
  set matches to false
  tell application "Music"
    set matches to album of trk is equal to albumString
    if matches is true and length of artistString is not 0 then
      set matches to artist of trk is equal to artistString
    end if
  end tell
  return matches
end verifyTrack
on searchLibrary(searchString)
  tell application "Music"
    try
      set unfilteredResults to search the first library playlist for searchString
    on error errorString number errorNumber
      error "Cannot find " & searchString & " (" & errorString & " " & (errorNumber as string) & ")" number 501
    end try
  end tell
  if unfilteredResults is missing value then
    return {}
  end if
  return unfilteredResults
end searchLibrary
on writeArtwork(searchString, results, imageData)
  if imageData is missing value then
    error "Cannot find image data for " & searchString number 502
  end if
  tell application "Music"
    repeat with trk in results
      try
        if (count of artworks of trk) is not 0 then
          delete artworks of trk
        end if
      on error errorString number errorNumber
        error "Cannot reset artwork for: " & searchString & " (" & errorString & " " & (errorNumber as string) & ")" number 503
      end try
      try
        set data of artwork 1 of trk to imageData
      on error errorString number errorNumber
        error "Cannot set artwork for: " & searchString & " (" & errorString & " " & (errorNumber as string) & ")" number 504
      end try
    end repeat
  end tell
  return true
end writeArtwork
on fixAlbumArtwork(searchString, verifyHandler, findImageHandler)
  global verifyTrackHandler, findImageDataHandler
  set verifyTrackHandler to verifyHandler
  set findImageDataHandler to findImageHandler
  set results to {}
  repeat with trk in my searchLibrary(searchString)
    if my verifyTrackHandler(contents of trk) then
      set the end of results to contents of trk
    end if
  end repeat
  set imageData to my findImageDataHandler(results)
  return my writeArtwork(searchString, results, imageData)
end fixAlbumArtwork
on matchingTracks(searchString, albumString, artistString)
  set results to {}
  repeat with trk in my searchLibrary(searchString)
    if my verifyTrack(contents of trk, albumString, artistString) then
      set the end of results to contents of trk
    end if
  end repeat
  return results
end matchingTracks
on fixArtwork(searchString, albumString, artistString, findImageInTracks)
  set results to my matchingTracks(searchString, albumString, artistString)
  if findImageInTracks is true then
    set imageData to my findPartialImage(results)
  else
    set imageData to my clipboardImage(results)
  end if
  return my writeArtwork(searchString, results, imageData)
end fixArtwork
on fixArtworkWithImage(searchString, albumString, artistString, imageData)
  set results to my matchingTracks(searchString, albumString, artistString)
  return my writeArtwork(searchString, results, imageData)
end fixArtworkWithImage
"""
